"""Unit tests for mapping parsed intents to shell commands."""

from __future__ import annotations

import pytest

from kairos.cli.command_hint import command_hint
from kairos.intelligence.contracts import IntentName, ParsedIntent


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "arguments", "expected"),
    [
        (IntentName.WHAT_NOW, {}, "what-now --minutes 60"),
        (IntentName.WHAT_NOW, {"available_min": 25}, "what-now --minutes 25"),
        (IntentName.STATUS, {}, "status"),
        (IntentName.REPLAN, {}, "replan"),
        (
            IntentName.PROJECT_UPDATE,
            {"project_id": "PHYS01", "name": "Quantum Physics", "status": "paused"},
            "project update PHYS01 --name 'Quantum Physics' --status paused",
        ),
        (IntentName.PROJECT_UPDATE, {"project_id": "PHYS01", "target_date": None}, "project update PHYS01"),
        (
            IntentName.PROJECT_ADD,
            {"name": "Bio"},
            "project add --id <SHORT_ID> --name Bio --domain <DOMAIN> --start <YYYY-MM-DD>",
        ),
        (IntentName.PROJECT_ARCHIVE, {}, "project archive <PROJECT_ID>"),
        (
            IntentName.WORK_ADD,
            {"node_id": "n1", "title": "Read", "type": "reading", "planned_min": 30},
            "work add --node n1 --title Read --type reading --planned-min 30",
        ),
        (IntentName.SESSION_LOG, {"work_item_id": "12", "minutes": 25}, "session log --work-item 12 --minutes 25"),
        (IntentName.SESSION_LOG, {}, "session log --work-item <WORK_ITEM_ID> --minutes <MINUTES>"),
        (IntentName.EXPLAIN_NOW, {}, "explain now"),
        (IntentName.EXPLAIN_WHY_NOT, {"project_id": "PHYS01"}, "explain why-not PHYS01"),
        (IntentName.REVIEW_WEEKLY, {}, "review weekly"),
        (IntentName.SIMULATE, {}, ""),
    ],
)
def test_command_hint(name, arguments, expected):
    assert command_hint(ParsedIntent(name, arguments=arguments)) == expected


@pytest.mark.unit
def test_no_intent_no_hint():
    assert command_hint(None) == ""
