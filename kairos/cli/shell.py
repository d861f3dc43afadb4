"""Line-oriented interactive shell over the command dispatcher."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from kairos.cli import render
from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.draft.session import DraftReply, DraftSession
from kairos.cli.help_chat import EXIT_WORDS, LIST_COMMANDS, HelpConversation
from kairos.cli.help_chat import INTRO as HELP_INTRO
from kairos.cli.outcome import DispatchResult
from kairos.cli.prompt_utils import DIM, RESET, YELLOW, LineReader, prompt_confirm, run_flow, styled
from kairos.cli.shell_history import ShellHistory
from kairos.cli.tui.types import OutputLevel, ViewID

logger = logging.getLogger(__name__)


class Shell:
    def __init__(
        self,
        dispatcher: CommandDispatcher,
        history: Optional[ShellHistory] = None,
        reader: Optional[LineReader] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.history = history or ShellHistory(None)
        self.reader = reader or LineReader(self.history)
        self.failed = False

    @classmethod
    def from_config(cls, dispatcher: CommandDispatcher) -> "Shell":
        shell_cfg = dispatcher.ctx.config.shell
        history = ShellHistory(Path(shell_cfg.history_file).expanduser(), shell_cfg.history_limit)
        history.load()
        return cls(dispatcher, history)

    def run(self) -> int:
        logger.info("shell session started")
        print(f"{DIM}Kairos shell. Type 'help' for commands, 'exit' to quit.{RESET}")
        while True:
            line = self.reader.command(self.dispatcher.state.prompt())
            if line is None:
                break
            if not line.strip():
                continue
            if self.handle(self.dispatcher.dispatch(line)):
                break
        logger.info("shell session ended")
        return 0

    def handle(self, result: DispatchResult) -> bool:
        """Show ``result`` and follow up on it. Returns True when the shell should exit."""
        if result.clear:
            print("\033[2J\033[H", end="")
        if result.is_error:
            self.failed = True
        if result.output:
            print(styled(result.output.rstrip("\n"), result.level))

        if result.pending is not None:
            confirmed = prompt_confirm(self.reader.answer, result.pending.prompt, result.pending.default)
            return self.handle(self.dispatcher.confirm(result.pending, confirmed))

        if result.flow is not None:
            if run_flow(self.reader.answer, result.flow):
                return self.handle(self.dispatcher.complete_flow(result.flow))
            print("Cancelled.")
            return False

        if result.view is not None:
            if result.view.view == ViewID.HELP_CHAT:
                self.help_chat(result.view.text)
            elif result.view.view == ViewID.DRAFT:
                self.draft(result.view.text)
        return result.quit

    # --- help chat ---

    def help_chat(self, question: str = "") -> None:
        conversation = HelpConversation(self.dispatcher.ctx)
        print(f"{DIM}{HELP_INTRO}{RESET}")

        while True:
            if not question:
                line = self.reader.answer("help> ")
                if line is None:
                    return
                question = line.strip()
                if not question:
                    continue
            if question.lower() in EXIT_WORDS:
                return
            if question.lower() == LIST_COMMANDS:
                print(render.format_command_list(conversation.commands).rstrip("\n"))
            else:
                print(render.format_help_answer(conversation.turn(question)).rstrip("\n"))
            question = ""

    # --- draft ---

    def draft(self, description: str = "") -> None:
        session = DraftSession(self.dispatcher.ctx, description)
        self._show_draft(session.begin())
        while not session.done:
            prompt = session.prompt
            if prompt:
                print(prompt)
            line = self.reader.answer("draft> ")
            if line is None:
                self._show_draft(session.submit("/cancel"))
                return
            self._show_draft(session.submit(line))

    def _show_draft(self, reply: DraftReply) -> None:
        for line in reply.lines:
            print(line)
        for warning in reply.warnings:
            print(f"{YELLOW}{warning}{RESET}")
        if reply.imported is not None:
            print(styled("Project is now active.", OutputLevel.SUCCESS))
