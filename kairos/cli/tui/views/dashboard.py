"""Root view: session context plus the status summary."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.binding import Binding

from kairos.cli import render
from kairos.cli.outcome import ViewRequest
from kairos.cli.tui.messages import OpenView
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import DIM, HEADING, NORMAL, StackView
from kairos.core.models import StatusResponse


class DashboardView(StackView):
    view_id = ViewID.DASHBOARD
    short_help = "[p] Projects  [i] Inspect active  [r] Refresh"

    BINDINGS = [
        Binding("p", "projects", "Projects"),
        Binding("i", "inspect", "Inspect"),
        Binding("r", "reload", "Refresh"),
    ]

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.status: StatusResponse | None = None

    def reload(self) -> None:
        services, scope = self.ctx.services, self.ctx.scope()
        self.load(lambda: services.status.get_status(scope))

    def loaded(self, data: StatusResponse) -> None:
        self.status = data

    def action_projects(self) -> None:
        self.post_message(OpenView(ViewRequest(ViewID.PROJECT_LIST)))

    def action_inspect(self) -> None:
        project_id = self.ctx.state.active_project_id
        if project_id:
            self.post_message(OpenView(ViewRequest(ViewID.TASK_LIST, project_id=project_id)))
        else:
            self.post_message(OpenView(ViewRequest(ViewID.PROJECT_LIST)))

    def action_reload(self) -> None:
        self.reload()

    def render(self) -> Text:
        text = Text()
        text.append("Context\n", style=HEADING)
        text.append(self.ctx.state.describe() + "\n\n", style=NORMAL)
        text.append("Status\n", style=HEADING)
        notice = self.status_line()
        if notice is not None:
            text.append_text(notice)
        elif self.status is not None:
            text.append(render.format_status(self.status).rstrip("\n"), style=NORMAL)
        text.append("\n\nType : for a command, ? for what to do now.", style=DIM)
        return text
