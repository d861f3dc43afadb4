"""Context actions for a project or a work item."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from rich.text import Text
from textual.binding import Binding

from kairos.cli.tui.messages import CommandRequested
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import DIM, HEADING, NORMAL, SELECTED, SelectableListMixin, StackView
from kairos.core.models import Project, WorkItem


@dataclass(frozen=True)
class MenuAction:
    label: str
    command: str


def project_actions(project: Project) -> list[MenuAction]:
    pid = project.id
    return [
        MenuAction("Use as active project", f"use {pid}"),
        MenuAction("Inspect", f"inspect {pid}"),
        MenuAction("Add node", "node add"),
        MenuAction("Add work item", "work add"),
        MenuAction("What now", "what-now"),
        MenuAction("Archive", f"project archive {pid}"),
    ]


def item_actions(item: WorkItem, log_minutes: int) -> list[MenuAction]:
    iid = item.id
    return [
        MenuAction("Start", f"start {iid}"),
        MenuAction(f"Log {log_minutes}m", f"log {iid} {log_minutes}"),
        MenuAction("Finish", f"finish {iid}"),
        MenuAction("Details", f"work inspect {iid}"),
        MenuAction("Archive", f"work archive {iid}"),
    ]


class ActionMenuView(SelectableListMixin[MenuAction], StackView):
    """Menu for a project, or for one of its work items when ``item_id`` is set.

    Choosing an entry runs its command and closes the menu.
    """

    view_id = ViewID.ACTION_MENU
    short_help = "[↑/↓] Move  [Enter] Run"

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("enter", "choose", "Run"),
    ]

    def __init__(self, *args: Any, project_id: str, item_id: str = "", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.project_id = project_id
        self.item_id = item_id
        self.target: Optional[Union[Project, WorkItem]] = None
        self.flat_items = []
        self.selected_index = 0
        self.scroll_offset = 0

    @property
    def title(self) -> str:
        if self.target is None:
            return "Actions"
        if isinstance(self.target, WorkItem):
            return f"#{self.target.seq}"
        return "Actions"

    def reload(self) -> None:
        services, project_id, item_id = self.ctx.services, self.project_id, self.item_id
        if item_id:
            self.load(lambda: services.work_items.get_by_id(item_id))
        else:
            self.load(lambda: services.projects.get_by_id(project_id))

    def loaded(self, data: Union[Project, WorkItem]) -> None:
        self.target = data
        if isinstance(data, WorkItem):
            minutes = self.ctx.state.last_duration or data.default_session_min
            self.flat_items = item_actions(data, minutes)
        else:
            self.flat_items = project_actions(data)
        self.reset_selection()

    def action_cursor_up(self) -> None:
        self.move_up()
        self.refresh()

    def action_cursor_down(self) -> None:
        self.move_down(max(self.size.height - 2, 1))
        self.refresh()

    def action_choose(self) -> None:
        action = self.selected
        if action is not None:
            self.post_message(CommandRequested(action.command, close=True))

    def render(self) -> Text:
        text = Text()
        if self.target is None:
            notice = self.status_line()
            if notice is not None:
                text.append_text(notice)
            return text
        if isinstance(self.target, WorkItem):
            text.append(f"#{self.target.seq} {self.target.title}\n", style=HEADING)
        else:
            text.append(f"{self.target.name} ({self.target.display_id})\n", style=HEADING)
        for index, action in enumerate(self.flat_items):
            style = SELECTED if index == self.selected_index else NORMAL
            text.append(f"  {index + 1}. {action.label}\n", style=style)
        text.append("\nEsc to go back.", style=DIM)
        return text
