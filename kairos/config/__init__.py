"""Global configuration management.

Config is loaded lazily on first use and cached:
    from kairos.config import get_config
"""

from typing import Optional

from dotenv import load_dotenv

from kairos.config.loader import load_config
from kairos.config.schema import KairosConfig
from kairos.paths import ENV_PATH

_config: Optional[KairosConfig] = None


def get_config() -> KairosConfig:
    """Return the process-wide config, loading ``~/.kairos/.env`` and config.yml once."""
    global _config
    if _config is None:
        load_dotenv(ENV_PATH)
        _config = load_config()
    return _config


def reset_config() -> None:
    global _config
    _config = None


__all__ = ["KairosConfig", "get_config", "load_config", "reset_config"]
