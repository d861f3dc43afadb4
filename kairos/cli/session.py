"""Per-session context threaded through dispatch, flows and views."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from kairos.constants import CHROME_ROWS, PROJECT_CACHE_TTL_S
from kairos.core.models import Project, ProjectStatus

# Context a worker thread may change and hand back through ``merge``
CONTEXT_FIELDS = (
    "active_project_id",
    "active_short_id",
    "active_project_name",
    "active_item_id",
    "active_item_title",
    "active_item_seq",
    "last_duration",
    "last_recommended_item_id",
)


@dataclass
class SessionState:
    """Mutable context for one interactive session.

    Created once when the shell or TUI starts, mutated by dispatch, read by
    views. Never torn down mid-session, only cleared.
    """

    active_project_id: str = ""
    active_short_id: str = ""
    active_project_name: str = ""
    active_item_id: str = ""
    active_item_title: str = ""
    active_item_seq: int = 0
    last_duration: int = 0
    last_recommended_item_id: str = ""
    width: int = 80
    height: int = 24
    cache_ttl_s: float = PROJECT_CACHE_TTL_S
    _project_cache: list[Project] = field(default_factory=list, repr=False)
    _project_cache_at: Optional[float] = field(default=None, repr=False)

    @property
    def has_project(self) -> bool:
        return bool(self.active_project_id)

    @property
    def has_item(self) -> bool:
        return bool(self.active_item_id)

    @property
    def content_height(self) -> int:
        return max(self.height - CHROME_ROWS, 1)

    def set_active_project(self, project_id: str, short_id: str, name: str) -> None:
        if project_id != self.active_project_id:
            self.clear_item_context()
        self.active_project_id = project_id
        self.active_short_id = short_id
        self.active_project_name = name

    def clear_project_context(self) -> None:
        self.active_project_id = ""
        self.active_short_id = ""
        self.active_project_name = ""
        self.clear_item_context()

    def set_active_item(self, item_id: str, title: str, seq: int = 0) -> None:
        self.active_item_id = item_id
        self.active_item_title = title
        self.active_item_seq = seq

    def clear_item_context(self) -> None:
        self.active_item_id = ""
        self.active_item_title = ""
        self.active_item_seq = 0

    def clear(self) -> None:
        self.clear_project_context()
        self.last_recommended_item_id = ""

    def cached_projects(self, loader: Callable[[], list[Project]], now: Optional[float] = None) -> list[Project]:
        """Return the project list, reloading when the cached copy is older than the TTL."""
        now = time.monotonic() if now is None else now
        if self._project_cache_at is None or now - self._project_cache_at >= self.cache_ttl_s:
            self._project_cache = loader()
            self._project_cache_at = now
        return list(self._project_cache)

    def invalidate_projects(self) -> None:
        self._project_cache_at = None

    def snapshot(self) -> "SessionState":
        """Independent copy for work that runs off the UI thread."""
        return replace(self, _project_cache=list(self._project_cache))

    def merge(self, before: "SessionState", after: "SessionState") -> None:
        """Apply what changed between ``before`` and ``after`` onto this state.

        Fields the worker left alone keep whatever this state holds now, so
        changes made here in the meantime survive.
        """
        for name in CONTEXT_FIELDS:
            value = getattr(after, name)
            if value != getattr(before, name):
                setattr(self, name, value)
        if after._project_cache_at != before._project_cache_at:
            self._project_cache = list(after._project_cache)
            self._project_cache_at = after._project_cache_at

    def project_updated(self, project: Project) -> None:
        """Refresh the cached list and the active context after ``project`` changed.

        An archived project cannot stay active.
        """
        self.invalidate_projects()
        if self.active_project_id != project.id:
            return
        if project.status == ProjectStatus.ARCHIVED:
            self.clear_project_context()
        else:
            self.set_active_project(project.id, project.short_id, project.name)

    def prompt(self) -> str:
        if self.active_short_id:
            return f"kairos ({self.active_short_id}) ❯ "
        return "kairos ❯ "

    def describe(self) -> str:
        lines = []
        if self.active_project_id:
            lines.append(f"Project: {self.active_project_name} ({self.active_short_id})")
        else:
            lines.append("Project: (none)")
        if self.active_item_id:
            seq = f"#{self.active_item_seq} " if self.active_item_seq else ""
            lines.append(f"Item:    {seq}{self.active_item_title}")
        else:
            lines.append("Item:    (none)")
        if self.last_duration:
            lines.append(f"Last duration: {self.last_duration}m")
        return "\n".join(lines)
