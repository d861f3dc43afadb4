import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel

from kairos.config.schema import KairosConfig
from kairos.paths import CONFIG_PATH

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _warn_unknown_keys(model: BaseModel, path: str, config_path: Path) -> None:
    """Recursively warn about unknown keys in a model and its nested models."""
    if model.model_extra:
        logger.warning("Unknown keys in %s at %s: %s", path, config_path, list(model.model_extra.keys()))

    for field_name, field_value in model.__dict__.items():
        if isinstance(field_value, BaseModel):
            _warn_unknown_keys(field_value, f"{path}.{field_name}", config_path)


def _section(merged: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = merged.get(name)
    if not isinstance(section, dict):
        section = {}
        merged[name] = section
    return section


def _env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Layer KAIROS_* environment variables over the file values."""
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in raw.items()}
    llm = _section(merged, "llm")
    logging_section = _section(merged, "logging")
    backend = _section(merged, "backend")

    enabled = os.getenv("KAIROS_LLM_ENABLED")
    if enabled is not None:
        llm["enabled"] = enabled.strip().lower() in _TRUE_VALUES

    timeout = os.getenv("KAIROS_LLM_PARSE_TIMEOUT_MS")
    if timeout:
        try:
            llm["parse_timeout_ms"] = int(timeout)
        except ValueError:
            logger.warning("Ignoring non-integer KAIROS_LLM_PARSE_TIMEOUT_MS=%r", timeout)

    threshold = os.getenv("KAIROS_LLM_CONFIDENCE_THRESHOLD")
    if threshold:
        try:
            llm["confidence_threshold"] = float(threshold)
        except ValueError:
            logger.warning("Ignoring non-numeric KAIROS_LLM_CONFIDENCE_THRESHOLD=%r", threshold)

    level = os.getenv("KAIROS_LOG_LEVEL")
    if level:
        logging_section["level"] = level

    factory = os.getenv("KAIROS_BACKEND")
    if factory:
        backend["factory"] = factory

    return merged


def load_config(path: Optional[Path] = None) -> KairosConfig:
    """Load and validate configuration from a YAML file plus environment overrides.

    Args:
        path: Path to config.yml. Defaults to ``KAIROS_CONFIG`` or ``~/.kairos/config.yml``.

    Returns:
        The validated configuration model.
    """
    if path is None:
        env_path = os.getenv("KAIROS_CONFIG")
        path = Path(env_path).expanduser() if env_path else CONFIG_PATH

    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to read config file %s: %s", path, e)
            loaded = {}
        if isinstance(loaded, dict):
            raw = loaded
        else:
            logger.warning("Ignoring config file %s: top level must be a mapping", path)

    model = KairosConfig.model_validate(_env_overrides(raw))
    _warn_unknown_keys(model, "root", path)
    return model
