from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class LLMConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = False
    parse_timeout_ms: int = 8000
    confidence_threshold: float = 0.85

    @field_validator("confidence_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence_threshold must be within [0, 1], got: {v}")
        return v

    @field_validator("parse_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"parse_timeout_ms must be positive, got: {v}")
        return v


class ShellConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    history_file: str = "~/.kairos/shell_history"
    history_limit: int = 500
    project_cache_ttl_s: float = 5.0
    default_minutes: int = 60


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return upper


class BackendConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    factory: Optional[str] = None  # "package.module:callable" returning a Services bundle

    @field_validator("factory")
    @classmethod
    def validate_factory(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        module, sep, attr = v.partition(":")
        if not sep or not module or not attr:
            raise ValueError(f"Invalid backend factory: {v}. Expected format: package.module:callable")
        return v


class KairosConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    llm: LLMConfig = LLMConfig()
    shell: ShellConfig = ShellConfig()
    logging: LoggingConfig = LoggingConfig()
    backend: BackendConfig = BackendConfig()
