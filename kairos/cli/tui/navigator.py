"""View stack, key routing and request tokens.

Nothing here touches Textual, so navigation rules are testable without a
running app.
"""

from __future__ import annotations

import itertools
from typing import Generic, Iterator, Optional, Protocol, TypeVar

from kairos.cli.tui.types import KeyRoute, ViewID

BREADCRUMB_SEPARATOR = " › "


class StackEntry(Protocol):
    """What the stack needs from a view."""

    view_id: ViewID
    captures_input: bool

    @property
    def title(self) -> str: ...


V = TypeVar("V", bound=StackEntry)


class ViewStack(Generic[V]):
    """Ordered views; only the top one is active.

    The root view is never removed, so the stack always holds at least one view.
    """

    def __init__(self, root: V) -> None:
        self._views: list[V] = [root]

    def __len__(self) -> int:
        return len(self._views)

    def __iter__(self) -> Iterator[V]:
        return iter(list(self._views))

    @property
    def active(self) -> V:
        return self._views[-1]

    @property
    def root(self) -> V:
        return self._views[0]

    @property
    def at_root(self) -> bool:
        return len(self._views) == 1

    def push(self, view: V) -> None:
        self._views.append(view)

    def replace(self, view: V) -> V:
        """Swap the top view for ``view``. Returns the view that was replaced.

        Replacing the root keeps the stack at length 1.
        """
        previous = self._views[-1]
        self._views[-1] = view
        return previous

    def pop(self) -> Optional[V]:
        """Remove the top view. No-op at the root (returns None)."""
        if len(self._views) == 1:
            return None
        return self._views.pop()

    def find(self, view_id: ViewID) -> Optional[V]:
        for view in reversed(self._views):
            if view.view_id == view_id:
                return view
        return None

    def breadcrumb(self) -> str:
        return BREADCRUMB_SEPARATOR.join(view.title for view in self._views)


def route_key(key: str, *, command_bar_focused: bool, active_captures: bool) -> KeyRoute:
    """Decide who handles ``key``.

    Escape blurs a focused command bar, pops a plain view, and asks a
    capturing view to cancel itself. Otherwise the focused command bar and
    capturing views take every key; the global bindings apply only above a
    plain view.
    """
    if key == "escape":
        if command_bar_focused:
            return KeyRoute.BLUR_COMMAND_BAR
        if active_captures:
            return KeyRoute.CANCEL_VIEW
        return KeyRoute.POP
    if command_bar_focused:
        return KeyRoute.COMMAND_BAR
    if active_captures:
        return KeyRoute.VIEW
    if key in (":", "colon"):
        return KeyRoute.FOCUS_COMMAND_BAR
    if key == "q":
        return KeyRoute.QUIT
    if key in ("?", "question_mark"):
        return KeyRoute.RECOMMEND
    return KeyRoute.VIEW


class RequestTracker:
    """Hands out tokens for background loads; only the newest one counts."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._current = 0
        self._pending = False

    @property
    def loading(self) -> bool:
        return self._pending

    @property
    def current(self) -> int:
        return self._current

    def issue(self) -> int:
        """Start a new request, superseding any in flight."""
        self._current = next(self._counter)
        self._pending = True
        return self._current

    def is_current(self, token: int) -> bool:
        return self._pending and token == self._current

    def complete(self, token: int) -> bool:
        """Mark ``token`` done. Returns False for a stale token, whose result must be dropped."""
        if not self.is_current(token):
            return False
        self._pending = False
        return True

    def abandon(self) -> None:
        """Drop whatever is in flight; its completion will read as stale."""
        self._pending = False
