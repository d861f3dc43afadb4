"""Selectable list of non-archived projects."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.binding import Binding

from kairos.cli.outcome import ViewRequest
from kairos.cli.tui.messages import CommandRequested, OpenView
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import DIM, HEADING, NORMAL, SELECTED, SelectableListMixin, StackView
from kairos.core.models import Project


class ProjectListView(SelectableListMixin[Project], StackView):
    view_id = ViewID.PROJECT_LIST
    short_help = "[↑/↓] Move  [Enter] Inspect  [u] Use  [a] Actions"

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("enter", "inspect", "Inspect"),
        Binding("u", "use", "Use"),
        Binding("a", "actions", "Actions"),
    ]

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.flat_items = []
        self.selected_index = 0
        self.scroll_offset = 0

    @property
    def title(self) -> str:
        return "Projects"

    def reload(self) -> None:
        projects = self.ctx.services.projects
        self.load(lambda: projects.list_projects(include_archived=False))

    def loaded(self, data: list[Project]) -> None:
        current = self.selected
        self.flat_items = list(data)
        self.reset_selection()
        if current is not None:
            for index, project in enumerate(self.flat_items):
                if project.id == current.id:
                    self.selected_index = index

    def _rows(self) -> int:
        return max(self.size.height - 2, 1)

    def action_cursor_up(self) -> None:
        self.move_up()
        self.refresh()

    def action_cursor_down(self) -> None:
        self.move_down(self._rows())
        self.refresh()

    def action_inspect(self) -> None:
        project = self.selected
        if project is not None:
            self.post_message(OpenView(ViewRequest(ViewID.TASK_LIST, project_id=project.id)))

    def action_use(self) -> None:
        project = self.selected
        if project is not None:
            self.post_message(CommandRequested(f"use {project.id}"))

    def action_actions(self) -> None:
        project = self.selected
        if project is not None:
            self.post_message(OpenView(ViewRequest(ViewID.ACTION_MENU, project_id=project.id)))

    def render(self) -> Text:
        text = Text()
        text.append(f"{'ID':<9}{'Name':<32}Status\n", style=HEADING)
        notice = self.status_line()
        if notice is not None and not self.flat_items:
            text.append_text(notice)
            return text
        if not self.flat_items:
            text.append("No projects. Create one with 'project add' or 'draft'.", style=DIM)
            return text
        active_id = self.ctx.state.active_project_id
        for index, project in self.visible_slice(self._rows()):
            marker = "*" if project.id == active_id else " "
            due = f"  due {project.target_date.isoformat()}" if project.target_date else ""
            line = f"{marker}{project.display_id:<8}{project.name:<32}{project.status.value}{due}"
            text.append(line + "\n", style=SELECTED if index == self.selected_index else NORMAL)
        return text
