"""Draft view: the structure wizard and draft conversation inside the TUI."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.draft.session import DraftReply, DraftSession
from kairos.cli.outcome import DispatchResult
from kairos.cli.tui.messages import ViewFinished
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.base import WARN, TranscriptView

logger = logging.getLogger(__name__)

LATE_CANCEL = "The draft was imported before the cancel took effect."


class DraftView(TranscriptView):
    """Runs a ``DraftSession`` one turn at a time in a thread worker.

    Turns work on a snapshot of the session context; an accepted import is
    applied to the live context in ``loaded``. Escape during a turn asks the
    session to stop and closes the view once the turn reports back.
    """

    view_id = ViewID.DRAFT

    def __init__(self, dispatcher: CommandDispatcher, description: str = "", **kwargs: Any) -> None:
        super().__init__(dispatcher, **kwargs)
        self.session = DraftSession(dispatcher.detached().ctx, description)
        self.closing = False

    @property
    def title(self) -> str:
        return "Draft"

    def on_mount(self) -> None:
        self.load(self.session.begin)

    def current_prompt(self) -> str:
        return self.session.prompt

    def turn(self, text: str) -> None:
        self.load(partial(self.session.submit, text))

    def loaded(self, reply: DraftReply) -> None:
        for line in reply.lines:
            self.write(line)
        for warning in reply.warnings:
            self.write(warning, WARN)
        if reply.imported is not None:
            project = reply.imported.project
            self.ctx.state.set_active_project(project.id, project.short_id, project.name)
            self.ctx.state.invalidate_projects()
            lines = reply.lines + [LATE_CANCEL] if self.closing else reply.lines
            self.post_message(ViewFinished(result=DispatchResult.success("\n".join(lines), refresh=True)))
            return
        if self.closing and not self.session.done:
            self.session.submit("/cancel")
        if reply.done or self.closing:
            self.post_message(ViewFinished(cancelled=True, message="Draft cancelled."))
            return
        self.set_prompt(self.session.prompt)

    def load_failed(self, error: str) -> None:
        if self.closing:
            self.post_message(ViewFinished(cancelled=True, message="Draft cancelled."))
            return
        super().load_failed(error)

    def cancel(self) -> None:
        if self.closing:
            return
        if self.requests.loading:
            # loaded() closes the view once the running turn reports back
            self.closing = True
            self.session.request_cancel()
            self.write("Cancelling after the current step…", WARN)
            self.set_prompt("cancelling…")
            return
        if not self.session.done:
            self.session.submit("/cancel")
        logger.info("draft cancelled from the TUI")
        self.post_message(ViewFinished(cancelled=True, message="Draft cancelled."))
