"""Help chat view."""

from __future__ import annotations

from functools import partial
from typing import Any

from kairos.cli import render
from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.help_chat import EXIT_WORDS, INTRO, LIST_COMMANDS, HelpConversation
from kairos.cli.tui.messages import ViewFinished
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import DIM, TranscriptView
from kairos.intelligence.contracts import HelpAnswer

PROMPT = "Ask a question"


class HelpChatView(TranscriptView):
    view_id = ViewID.HELP_CHAT

    def __init__(self, dispatcher: CommandDispatcher, question: str = "", **kwargs: Any) -> None:
        super().__init__(dispatcher, **kwargs)
        self.conversation = HelpConversation(dispatcher.ctx)
        self.first_question = question.strip()

    @property
    def title(self) -> str:
        return "Help"

    def on_mount(self) -> None:
        self.write(INTRO, DIM)
        self.set_prompt(PROMPT)
        if self.first_question:
            self.write(f"> {self.first_question}", DIM)
            self.turn(self.first_question)

    def current_prompt(self) -> str:
        return PROMPT

    def turn(self, text: str) -> None:
        question = text.strip()
        if not question:
            return
        if question.lower() in EXIT_WORDS:
            self.post_message(ViewFinished(message="Left help chat."))
            return
        if question.lower() == LIST_COMMANDS:
            self.write(render.format_command_list(self.conversation.commands).rstrip("\n"))
            return
        self.load(partial(self.conversation.turn, question))

    def loaded(self, answer: HelpAnswer) -> None:
        self.write(render.format_help_answer(answer).rstrip("\n"))
        self.set_prompt(PROMPT)

    def cancel(self) -> None:
        self.requests.abandon()
        self.post_message(ViewFinished(cancelled=True, message="Help chat closed."))
