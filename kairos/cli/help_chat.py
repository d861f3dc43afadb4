"""Multi-turn help chat shared by the line shell and the TUI help view."""

from __future__ import annotations

import logging
from typing import Optional

from kairos.cli import commands
from kairos.cli.actions import CommandContext
from kairos.core.errors import KairosError
from kairos.intelligence import fallback
from kairos.intelligence.contracts import HelpAnswer, HelpChat

logger = logging.getLogger(__name__)

EXIT_WORDS = frozenset({"/quit", "/exit", "/q", "quit", "exit"})
LIST_COMMANDS = "/commands"

INTRO = "Help chat. Ask anything about kairos; /commands lists commands, /quit leaves."


class HelpConversation:
    """Keeps the help service's chat handle between turns.

    Without a help service, or when a turn fails, answers come from the
    deterministic catalog search.
    """

    def __init__(self, ctx: CommandContext) -> None:
        self.ctx = ctx
        self.commands = commands.build_command_spec().help_infos()
        self.chat: Optional[HelpChat] = None

    def turn(self, question: str) -> HelpAnswer:
        service = self.ctx.services.help
        try:
            if service is None:
                return fallback.answer_help(question, self.commands)
            if self.chat is None:
                self.chat, answer = service.start_chat(question, self.commands)
                return answer
            return service.next_turn(self.chat, question)
        except KairosError as exc:
            logger.warning("help chat turn failed, using deterministic answer: %s", exc)
            return fallback.answer_help(question, self.commands)
