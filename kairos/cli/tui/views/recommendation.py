"""What-now view: ranked recommendations for a time budget."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual.binding import Binding

from kairos.cli import render
from kairos.cli.tui.messages import CommandRequested
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import DIM, HEADING, NORMAL, SELECTED, WARN, StackView
from kairos.core.models import WhatNowResponse, WorkSlice

MINUTES_STEP = 15


class RecommendationView(StackView):
    view_id = ViewID.RECOMMENDATION
    short_help = "[↑/↓] Move  [+/-] Budget  [s] Start  [l] Log  [r] Refresh"

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("plus,equals_sign", "budget(1)", "More time"),
        Binding("minus", "budget(-1)", "Less time"),
        Binding("s", "run('start')", "Start"),
        Binding("l", "run('log')", "Log"),
        Binding("r", "reload", "Refresh"),
    ]

    def __init__(self, *args: Any, minutes: int, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.minutes = minutes
        self.response: Optional[WhatNowResponse] = None
        self.selected_index = 0

    @property
    def title(self) -> str:
        return f"What now ({self.minutes}m)"

    def reload(self) -> None:
        services, minutes, scope = self.ctx.services, self.minutes, self.ctx.scope()
        self.load(lambda: services.what_now.recommend(minutes, scope))

    def loaded(self, data: WhatNowResponse) -> None:
        self.response = data
        self.selected_index = 0
        if data.recommendations:
            self.ctx.state.last_recommended_item_id = data.recommendations[0].work_item_id

    def _selected(self) -> Optional[WorkSlice]:
        if self.response is None or not self.response.recommendations:
            return None
        return self.response.recommendations[min(self.selected_index, len(self.response.recommendations) - 1)]

    def action_cursor_up(self) -> None:
        self.selected_index = max(0, self.selected_index - 1)
        self.refresh()

    def action_cursor_down(self) -> None:
        if self.response is not None and self.response.recommendations:
            self.selected_index = min(len(self.response.recommendations) - 1, self.selected_index + 1)
        self.refresh()

    def action_budget(self, direction: int) -> None:
        self.minutes = max(MINUTES_STEP, self.minutes + direction * MINUTES_STEP)
        self.reload()

    def action_run(self, verb: str) -> None:
        rec = self._selected()
        if rec is None:
            return
        if verb == "log":
            self.post_message(CommandRequested(f"log {rec.work_item_id} {rec.allocated_min}"))
        else:
            self.post_message(CommandRequested(f"{verb} {rec.work_item_id}"))

    def action_reload(self) -> None:
        self.reload()

    def render(self) -> Text:
        text = Text()
        notice = self.status_line()
        if notice is not None:
            text.append_text(notice)
            text.append("\n")
        resp = self.response
        if resp is None:
            return text
        text.append(
            f"{resp.mode} mode, {resp.allocated_min}/{resp.requested_min} min allocated\n",
            style=HEADING,
        )
        if not resp.recommendations:
            text.append("  Nothing to recommend.\n", style=DIM)
        for index, rec in enumerate(resp.recommendations):
            seq = f"#{rec.work_item_seq} " if rec.work_item_seq else ""
            minutes = render.format_minutes(rec.allocated_min)
            line = f"  {index + 1}. {seq}{rec.title}  {minutes}  (score {rec.score:.1f})"
            text.append(line + "\n", style=SELECTED if index == self.selected_index else NORMAL)
            for reason in rec.reasons[:2]:
                text.append(f"       - {reason.message}\n", style=DIM)
        if resp.unallocated_min:
            text.append(f"  {resp.unallocated_min} min unallocated.\n", style=DIM)
        for blocker in resp.blockers:
            text.append(f"  blocked: {blocker.message}\n", style=WARN)
        for message in resp.policy_messages:
            text.append(f"  note: {message}\n", style=DIM)
        return text
