"""Custom Textual messages for TUI inter-widget communication."""

from __future__ import annotations

from typing import Optional

from textual.message import Message

from kairos.cli.outcome import DispatchResult, ViewRequest

# --- Command bar ---


class CommandSubmitted(Message):
    """User pressed Enter in the command bar."""

    def __init__(self, line: str) -> None:
        super().__init__()
        self.line = line


# --- View navigation ---


class CommandRequested(Message):
    """A view wants a command line run through the dispatcher.

    ``close`` pops the requesting view first (menus close once an entry is chosen).
    """

    def __init__(self, line: str, *, close: bool = False) -> None:
        super().__init__()
        self.line = line
        self.close = close


class OpenView(Message):
    """A view wants another view pushed on top of it."""

    def __init__(self, request: ViewRequest) -> None:
        super().__init__()
        self.request = request


class ViewFinished(Message):
    """An input-capturing view completed or was cancelled.

    The app pops the view, shows ``message`` and returns focus to the command
    bar. ``result`` carries a follow-up dispatch result (e.g. a finished form's
    command output); if that result opens another view, it replaces the
    finished one instead.
    """

    def __init__(
        self,
        *,
        cancelled: bool = False,
        message: str = "",
        result: Optional[DispatchResult] = None,
    ) -> None:
        super().__init__()
        self.cancelled = cancelled
        self.message = message
        self.result = result
