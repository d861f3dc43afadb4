"""Base classes and mixins for TUI views."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, ClassVar, Generic, Optional, TypeVar

from rich.style import Style
from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Input, RichLog, Static

from kairos.cli.actions import CommandContext
from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.tui.messages import ViewFinished
from kairos.cli.tui.navigator import RequestTracker
from kairos.cli.tui.types import OutputLevel, ViewID
from kairos.core.errors import KairosError

logger = logging.getLogger(__name__)

# Styles
NORMAL = Style(color="#d0d0d0")
DIM = Style(color="#727578")
HEADING = Style(bold=True, color="#87afd7")
SELECTED = Style(bold=True, reverse=True)
OK = Style(color="#5faf5f")
WARN = Style(color="#d7af5f")
FAIL = Style(color="#d75f5f")

LEVEL_STYLES = {
    OutputLevel.INFO: NORMAL,
    OutputLevel.SUCCESS: OK,
    OutputLevel.WARNING: WARN,
    OutputLevel.ERROR: FAIL,
}

T = TypeVar("T")


class StackView(Widget, can_focus=True):
    """One entry on the view stack.

    Subclasses set ``view_id`` and, for views that take free-text input,
    ``captures_input``. Data views fetch in a thread worker through ``load``;
    results from a superseded request are dropped.
    """

    DEFAULT_CSS = """
    StackView {
        width: 100%;
        height: 1fr;
    }
    """

    view_id: ClassVar[ViewID]
    captures_input: ClassVar[bool] = False
    short_help: ClassVar[str] = ""

    def __init__(self, dispatcher: CommandDispatcher, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.dispatcher = dispatcher
        self.requests = RequestTracker()
        self.load_error = ""

    @property
    def title(self) -> str:
        return self.view_id.value.replace("_", " ").title()

    @property
    def ctx(self) -> CommandContext:
        return self.dispatcher.ctx

    def reload(self) -> None:
        """Fetch fresh data. Views without collaborator data ignore this."""

    def resized(self, width: int, height: int) -> None:
        self.refresh()

    def cancel(self) -> None:
        """Escape on a capturing view: close it as cancelled."""
        self.post_message(ViewFinished(cancelled=True, message="Cancelled."))

    def focus_input(self) -> None:
        self.focus()

    # --- background loads ---

    def load(self, fetch: Callable[[], T]) -> None:
        token = self.requests.issue()
        self.refresh()
        self.run_worker(partial(self._fetch, token, fetch), thread=True, group="load", exit_on_error=False)

    def _fetch(self, token: int, fetch: Callable[[], Any]) -> None:
        data: Any = None
        error = ""
        try:
            data = fetch()
        except KairosError as exc:
            logger.warning("%s load failed: %s", self.view_id.value, exc)
            error = str(exc)
        except Exception as exc:
            logger.exception("%s load failed", self.view_id.value)
            error = f"Error: {exc}"
        self.app.call_from_thread(self._deliver, token, data, error)

    def _deliver(self, token: int, data: Any, error: str) -> None:
        if not self.requests.complete(token):
            logger.debug("dropping stale %s result (token %d)", self.view_id.value, token)
            return
        if error:
            self.load_failed(error)
        else:
            self.load_error = ""
            self.loaded(data)
        self.refresh()

    def loaded(self, data: Any) -> None:
        """Apply a fetched result on the UI thread."""

    def load_failed(self, error: str) -> None:
        self.load_error = error

    # --- rendering helpers ---

    def status_line(self) -> Optional[Text]:
        if self.requests.loading:
            return Text("Loading…", style=DIM)
        if self.load_error:
            return Text(self.load_error, style=FAIL)
        return None


class SelectableListMixin(Generic[T]):
    """Cursor over ``flat_items`` with a scroll window.

    Requires these attributes on the class:
    - flat_items: list - Items to move through
    - selected_index: int - Currently selected item index
    - scroll_offset: int - First visible item index
    """

    flat_items: list[T]
    selected_index: int
    scroll_offset: int

    @property
    def selected(self) -> Optional[T]:
        if not self.flat_items:
            return None
        return self.flat_items[min(self.selected_index, len(self.flat_items) - 1)]

    def move_up(self) -> None:
        self.selected_index = max(0, self.selected_index - 1)
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index

    def move_down(self, visible_rows: int) -> None:
        if not self.flat_items:
            return
        self.selected_index = min(len(self.flat_items) - 1, self.selected_index + 1)
        last_visible = self.scroll_offset + max(visible_rows, 1) - 1
        if self.selected_index > last_visible:
            self.scroll_offset += self.selected_index - last_visible

    def reset_selection(self) -> None:
        self.selected_index = 0
        self.scroll_offset = 0

    def visible_slice(self, visible_rows: int) -> list[tuple[int, T]]:
        end = self.scroll_offset + max(visible_rows, 1)
        return list(enumerate(self.flat_items))[self.scroll_offset : end]


class TranscriptView(StackView):
    """Capturing view with a scrolling transcript and one input line.

    Each submitted line becomes one ``turn``; slow turns run through ``load``
    and input is ignored until the pending turn answers.
    """

    captures_input = True
    short_help = "[Enter] Send  [Esc] Cancel"

    DEFAULT_CSS = """
    TranscriptView {
        layout: vertical;
    }
    TranscriptView #transcript {
        height: 1fr;
    }
    TranscriptView #transcript-prompt {
        height: auto;
    }
    """

    def compose(self) -> ComposeResult:
        yield RichLog(id="transcript", wrap=True, markup=False)
        yield Static(id="transcript-prompt")
        yield Input(id="transcript-input")

    def focus_input(self) -> None:
        self.query_one("#transcript-input", Input).focus()

    def write(self, line: str, style: Style = NORMAL) -> None:
        self.query_one("#transcript", RichLog).write(Text(line, style=style))

    def set_prompt(self, prompt: str) -> None:
        self.query_one("#transcript-prompt", Static).update(Text(prompt, style=HEADING))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        if self.requests.loading:
            return
        event.input.value = ""
        self.write(f"> {event.value}", DIM)
        self.turn(event.value)

    def load(self, fetch: Callable[[], T]) -> None:
        self.set_prompt("working…")
        super().load(fetch)

    def load_failed(self, error: str) -> None:
        self.write(error, FAIL)
        self.set_prompt(self.current_prompt())

    def current_prompt(self) -> str:
        return ""

    def turn(self, text: str) -> None:
        raise NotImplementedError
