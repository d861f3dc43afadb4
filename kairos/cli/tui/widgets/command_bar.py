"""Command bar: one-line input with history recall and verb completion."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from textual.binding import Binding
from textual.suggester import Suggester
from textual.widgets import Input

from kairos.cli.shell_history import ShellHistory
from kairos.cli.tui.messages import CommandSubmitted


class VerbSuggester(Suggester):
    """Completes the first word of the line from the known verbs."""

    def __init__(self, verbs: Iterable[str]) -> None:
        super().__init__(use_cache=True, case_sensitive=False)
        self.verbs = sorted(set(verbs))

    async def get_suggestion(self, value: str) -> Optional[str]:
        return suggest_verb(value, self.verbs)


def suggest_verb(value: str, verbs: Iterable[str]) -> Optional[str]:
    """Complete ``value`` to the first verb it prefixes; only while typing the first word."""
    if not value or " " in value:
        return None
    for verb in verbs:
        if verb.startswith(value) and verb != value:
            return verb
    return None


class CommandBar(Input):
    DEFAULT_CSS = """
    CommandBar {
        dock: bottom;
        height: 3;
    }
    """

    BINDINGS = [
        Binding("up", "history_older", "Previous", show=False),
        Binding("down", "history_newer", "Next", show=False),
    ]

    def __init__(self, history: ShellHistory, verbs: Iterable[str], **kwargs: Any) -> None:
        super().__init__(
            placeholder="Type a command (: to focus, help for a list)", suggester=VerbSuggester(verbs), **kwargs
        )
        self.history = history

    def action_history_older(self) -> None:
        entry = self.history.older()
        if entry is not None:
            self.value = entry
            self.cursor_position = len(entry)

    def action_history_newer(self) -> None:
        self.value = self.history.newer()
        self.cursor_position = len(self.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        line = event.value.strip()
        self.value = ""
        if not line:
            return
        self.history.append(line)
        self.post_message(CommandSubmitted(line))
