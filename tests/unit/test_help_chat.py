"""Unit tests for the multi-turn help conversation."""

from __future__ import annotations

import pytest

from kairos.cli.actions import CommandContext
from kairos.cli.help_chat import HelpConversation
from kairos.cli.session import SessionState
from kairos.config import KairosConfig
from tests.fakes import FakeHelp, make_services


def _conversation(**overrides) -> HelpConversation:
    return HelpConversation(CommandContext(make_services(**overrides), SessionState(), KairosConfig()))


@pytest.mark.unit
def test_without_help_service_answers_from_the_catalog():
    answer = _conversation().turn("weekly review")

    assert answer.source == "deterministic"
    assert answer.examples[0].command == "kairos review weekly"


@pytest.mark.unit
def test_first_turn_starts_a_chat_and_later_turns_continue_it():
    help_service = FakeHelp()
    conversation = _conversation(help=help_service)

    first = conversation.turn("how do I log time?")
    second = conversation.turn("and undo it?")

    assert first.answer == "first: how do I log time?"
    assert second.answer == "next: and undo it?"
    assert conversation.chat.turns[-1] == ("and undo it?", "next")
    assert help_service.questions == ["how do I log time?", "and undo it?"]


@pytest.mark.unit
def test_failed_turn_falls_back_to_the_catalog():
    conversation = _conversation(help=FakeHelp(fail=True))

    answer = conversation.turn("status")

    assert answer.source == "deterministic"
    assert conversation.chat is None


@pytest.mark.unit
def test_catalog_covers_every_command():
    conversation = _conversation()

    paths = [info.full_path for info in conversation.commands]

    assert "kairos what-now" in paths
    assert "kairos session log" in paths
