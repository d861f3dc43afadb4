"""kairos: interactive session engine for hierarchical project plans."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DIST_NAME = "kairos-shell"
_UNKNOWN = "0.0.0"


def _source_tree_version() -> str | None:
    """Version declared in a checkout's pyproject.toml, if there is one."""
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    try:
        project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project") or {}
    except (OSError, tomllib.TOMLDecodeError):
        return None
    declared = project.get("version") if isinstance(project, dict) else None
    return declared if isinstance(declared, str) else None


def _resolve_version() -> str:
    # An editable checkout may be ahead of the installed metadata.
    local = _source_tree_version()
    if local:
        return local
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return _UNKNOWN


__version__ = _resolve_version()

__all__ = ["DIST_NAME", "__version__"]
