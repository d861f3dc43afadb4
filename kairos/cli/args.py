"""Small parsing helpers shared by the dispatcher, flows and the ask path."""

from __future__ import annotations

import shlex
from datetime import date
from typing import Mapping, Optional

from kairos.constants import FORCE_FLAGS
from kairos.core.errors import UserInputError
from kairos.importer.validate import parse_iso_date
from kairos.intelligence.contracts import ArgValue


def tokenize(line: str) -> list[str]:
    """Split a command line respecting shell quoting.

    Raises:
        UserInputError: on unbalanced quotes.
    """
    try:
        return shlex.split(line)
    except ValueError as exc:
        raise UserInputError(f"Could not parse command: {exc}") from exc


def has_force_flag(args: list[str]) -> bool:
    return any(token in FORCE_FLAGS for token in args)


def strip_force_flags(args: list[str]) -> list[str]:
    return [token for token in args if token not in FORCE_FLAGS]


def validate_positive_int(value: str) -> Optional[str]:
    """Return an error message unless ``value`` is empty or a positive integer."""
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        return "enter a positive number"
    return None if parsed > 0 else "enter a positive number"


def validate_optional_date(value: str) -> Optional[str]:
    if not value:
        return None
    return None if parse_iso_date(value) is not None else "use YYYY-MM-DD format"


def parse_date_arg(value: str, field: str = "date") -> date:
    parsed = parse_iso_date(value)
    if parsed is None:
        raise UserInputError(f"invalid {field} {value!r} (expected YYYY-MM-DD)")
    return parsed


# --- intent argument maps ---


def int_arg(args: Mapping[str, ArgValue], key: str, fallback: int) -> int:
    value = args.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    return int(value)


def bool_arg(args: Mapping[str, ArgValue], key: str, fallback: bool) -> bool:
    value = args.get(key)
    return value if isinstance(value, bool) else fallback


def string_arg(args: Mapping[str, ArgValue], key: str) -> Optional[str]:
    value = args.get(key)
    return value if isinstance(value, str) else None
