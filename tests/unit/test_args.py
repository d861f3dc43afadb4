"""Unit tests for the shared parsing helpers."""

from __future__ import annotations

from datetime import date

import pytest

from kairos.cli.args import (
    bool_arg,
    has_force_flag,
    int_arg,
    parse_date_arg,
    strip_force_flags,
    string_arg,
    tokenize,
    validate_optional_date,
    validate_positive_int,
)
from kairos.core.errors import UserInputError


@pytest.mark.unit
def test_tokenize_respects_quotes():
    assert tokenize('work add --title "Read chapter 1" --type reading') == [
        "work", "add", "--title", "Read chapter 1", "--type", "reading",
    ]


@pytest.mark.unit
def test_tokenize_rejects_unbalanced_quotes():
    with pytest.raises(UserInputError, match="Could not parse command"):
        tokenize('log "unfinished')


@pytest.mark.unit
@pytest.mark.parametrize(("tokens", "forced"), [(["--yes"], True), (["-y"], True), (["--force"], True), (["-f"], False)])
def test_force_flags(tokens, forced):
    args = ["project", "remove", "PHYS01"] + tokens

    assert has_force_flag(args) is forced
    if forced:
        assert strip_force_flags(args) == ["project", "remove", "PHYS01"]


@pytest.mark.unit
@pytest.mark.parametrize(("raw", "error"), [("", None), ("15", None), ("0", "enter a positive number"), ("x", "enter a positive number")])
def test_validate_positive_int(raw, error):
    assert validate_positive_int(raw) == error


@pytest.mark.unit
def test_dates():
    assert validate_optional_date("") is None
    assert validate_optional_date("2026-03-01") is None
    assert validate_optional_date("01/03/2026") == "use YYYY-MM-DD format"
    assert parse_date_arg("2026-03-01") == date(2026, 3, 1)
    with pytest.raises(UserInputError, match="invalid due '2026-02-30'"):
        parse_date_arg("2026-02-30", "due")


@pytest.mark.unit
def test_intent_argument_accessors():
    args = {"minutes": 45.9, "recalc": True, "name": "Physics", "flag": "yes", "count": True}

    assert int_arg(args, "minutes", 60) == 45
    assert int_arg(args, "count", 60) == 60
    assert int_arg(args, "name", 60) == 60
    assert int_arg(args, "missing", 60) == 60
    assert bool_arg(args, "recalc", False) is True
    assert bool_arg(args, "flag", False) is False
    assert string_arg(args, "name") == "Physics"
    assert string_arg(args, "minutes") is None
