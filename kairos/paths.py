from __future__ import annotations

from pathlib import Path

KAIROS_HOME = Path("~/.kairos").expanduser()
CONFIG_PATH = KAIROS_HOME / "config.yml"
ENV_PATH = KAIROS_HOME / ".env"
LOG_DIR = KAIROS_HOME / "logs"
