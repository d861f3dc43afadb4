"""One project's nodes and work items, with a cursor over the items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from rich.text import Text
from textual.binding import Binding

from kairos.cli import render
from kairos.cli.outcome import ViewRequest
from kairos.cli.tui.messages import CommandRequested, OpenView
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import DIM, HEADING, NORMAL, OK, SELECTED, SelectableListMixin, StackView
from kairos.core.models import PlanNode, Project, WorkItem, WorkItemStatus


@dataclass(frozen=True)
class TreeRow:
    """A node header or a work item line; only item rows are selectable."""

    node: PlanNode
    item: Optional[WorkItem] = None


@dataclass
class ProjectTree:
    project: Project
    nodes: list[PlanNode]
    items: list[WorkItem]


def build_rows(nodes: list[PlanNode], items: list[WorkItem]) -> list[TreeRow]:
    by_node: dict[str, list[WorkItem]] = {}
    for item in items:
        by_node.setdefault(item.node_id, []).append(item)
    rows: list[TreeRow] = []
    for node in sorted(nodes, key=lambda n: n.order_index):
        rows.append(TreeRow(node))
        rows.extend(TreeRow(node, item) for item in sorted(by_node.get(node.id, []), key=lambda i: i.seq))
    return rows


class TaskListView(SelectableListMixin[TreeRow], StackView):
    view_id = ViewID.TASK_LIST
    short_help = "[↑/↓] Move  [Enter] Actions  [s] Start  [f] Finish  [l] Log  [u] Use project"

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("enter", "actions", "Actions"),
        Binding("s", "run('start')", "Start"),
        Binding("f", "run('finish')", "Finish"),
        Binding("l", "run('log')", "Log"),
        Binding("u", "use", "Use"),
    ]

    def __init__(self, *args: Any, project_id: str, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.project_id = project_id
        self.tree: Optional[ProjectTree] = None
        self.flat_items = []
        self.selected_index = 0
        self.scroll_offset = 0

    @property
    def title(self) -> str:
        if self.tree is not None:
            return self.tree.project.display_id
        return "Project"

    def reload(self) -> None:
        services, project_id = self.ctx.services, self.project_id

        def fetch() -> ProjectTree:
            project = services.projects.get_by_id(project_id)
            return ProjectTree(
                project,
                services.nodes.list_by_project(project_id),
                services.work_items.list_by_project(project_id),
            )

        self.load(fetch)

    def loaded(self, data: ProjectTree) -> None:
        self.tree = data
        self.flat_items = [row for row in build_rows(data.nodes, data.items) if row.item is not None]
        if self.selected_index >= len(self.flat_items):
            self.reset_selection()

    def _rows(self) -> int:
        return max(self.size.height - 2, 1)

    def _selected_item(self) -> Optional[WorkItem]:
        row = self.selected
        return row.item if row is not None else None

    def action_cursor_up(self) -> None:
        self.move_up()
        self.refresh()

    def action_cursor_down(self) -> None:
        self.move_down(self._rows())
        self.refresh()

    def action_actions(self) -> None:
        item = self._selected_item()
        if item is not None:
            self.post_message(OpenView(ViewRequest(ViewID.ACTION_MENU, project_id=self.project_id, text=item.id)))

    def action_run(self, verb: str) -> None:
        item = self._selected_item()
        if item is not None:
            self.post_message(CommandRequested(f"{verb} {item.id}"))

    def action_use(self) -> None:
        self.post_message(CommandRequested(f"use {self.project_id}"))

    def render(self) -> Text:
        text = Text()
        notice = self.status_line()
        if self.tree is None:
            if notice is not None:
                text.append_text(notice)
            return text
        project = self.tree.project
        due = f"  due {project.target_date.isoformat()}" if project.target_date else ""
        text.append(f"{project.name} ({project.display_id}){due}\n", style=HEADING)
        rows = build_rows(self.tree.nodes, self.tree.items)
        if not rows:
            text.append("  (empty)", style=DIM)
            return text
        selected = self._selected_item()
        selected_id = selected.id if selected is not None else ""
        active_item = self.ctx.state.active_item_id
        for row in rows:
            if row.item is None:
                node_due = f"  due {row.node.due_date.isoformat()}" if row.node.due_date else ""
                text.append(f"  #{row.node.seq} {row.node.title} [{row.node.kind}]{node_due}\n", style=DIM)
                continue
            item = row.item
            progress = f"{render.format_minutes(item.logged_min)}/{render.format_minutes(item.planned_min)}"
            marker = "▶" if item.id == active_item else " "
            line = f"    {marker} #{item.seq} {item.title} ({item.type}, {progress}) {item.status.value}"
            if item.id == selected_id:
                style = SELECTED
            elif item.status == WorkItemStatus.DONE:
                style = OK
            else:
                style = NORMAL
            text.append(line + "\n", style=style)
        return text
