"""kairos logging configuration.

Logs go to a rotating file under ``~/.kairos/logs`` so they never interleave
with the terminal UI. Set ``KAIROS_LOG_STDERR=1`` to mirror them to stderr
while debugging one-shot commands.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from kairos.constants import APP_NAME
from kairos.paths import LOG_DIR

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure kairos logging.

    Args:
        level: Optional override for ``KAIROS_LOG_LEVEL``.
    """
    global _configured
    if _configured:
        return

    if level:
        os.environ["KAIROS_LOG_LEVEL"] = level
    resolved = os.getenv("KAIROS_LOG_LEVEL")
    if not resolved:
        from kairos.config import get_config

        resolved = get_config().logging.level

    root = logging.getLogger(APP_NAME)
    root.setLevel(resolved.upper())
    formatter = logging.Formatter(_FORMAT)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_DIR / "kairos.log", maxBytes=1_000_000, backupCount=3)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    except OSError as exc:
        sys.stderr.write(f"kairos: file logging disabled ({exc})\n")

    if os.getenv("KAIROS_LOG_STDERR") == "1":
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    root.propagate = False
    _configured = True
