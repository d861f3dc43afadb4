"""One draft session: the structure wizard, optionally continued as a conversation.

Both the line shell and the TUI draft view drive a ``DraftSession`` with
whole input lines and render the reply lines it returns.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from kairos.cli import actions, render
from kairos.cli.actions import CommandContext
from kairos.cli.draft.bridge import BridgeReply, DraftBridge
from kairos.cli.draft.phases import (
    Collected,
    DescriptionPhase,
    Phase,
    ReviewAction,
    ReviewPhase,
    StartDatePhase,
)
from kairos.cli.draft.structure import build_llm_description, build_schema_from_wizard
from kairos.constants import CANCEL_WORDS
from kairos.core.errors import KairosError, SchemaValidationError
from kairos.core.models import ImportResult
from kairos.importer.schema import ImportSchema

logger = logging.getLogger(__name__)

WELCOME = (
    "Let's draft a new project. Answer each question, or press Enter for the default.\n"
    "Type /cancel at any time to stop."
)


@dataclass
class DraftReply:
    lines: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    done: bool = False
    imported: Optional[ImportResult] = None


class DraftSession:
    """Drives the wizard phases, then hands off to the bridge on "refine".

    ``begin()`` returns the opening lines; each ``submit()`` consumes one line.
    Once ``done`` is reported the session ignores further input.

    ``request_cancel()`` may be called from another thread while a turn runs:
    the turn stops before importing and the session ends cancelled.
    """

    def __init__(self, ctx: CommandContext, description: str = "", today: Optional[date] = None) -> None:
        self.ctx = ctx
        self.description = description.strip()
        self.today = today or date.today()
        self.phase: Phase = DescriptionPhase()
        self.collected = Collected()
        self.schema: Optional[ImportSchema] = None
        self.bridge: Optional[DraftBridge] = None
        self.done = False
        self._cancel_requested = threading.Event()

    @property
    def llm_available(self) -> bool:
        return self.ctx.services.draft is not None

    @property
    def in_conversation(self) -> bool:
        return self.bridge is not None

    @property
    def prompt(self) -> str:
        if self.bridge is not None:
            return self.bridge.prompt
        return self.phase.prompt

    def begin(self) -> DraftReply:
        if self.description and self.llm_available:
            seed = f"{self.description}\nStart date: {self.today.isoformat()}"
            reply = self._start_conversation(seed, None)
            if reply is not None:
                return reply
            return self._start_wizard(["Using the guided wizard instead."])
        if self.description:
            self.collected = Collected(description=self.description)
            self.phase = StartDatePhase(today=self.today)
            return DraftReply(
                [
                    "LLM features are disabled. Using guided wizard instead.",
                    WELCOME,
                    f"Description: {self.description}",
                ]
            )
        return self._start_wizard([])

    def submit(self, text: str) -> DraftReply:
        if self.done:
            return DraftReply(done=True)
        if self._cancel_requested.is_set():
            return self._cancel()
        text = text.strip()
        if text.lower() in CANCEL_WORDS:
            return self._cancel()
        if self.bridge is not None:
            try:
                return self._bridge_reply(self.bridge.handle(text))
            except KairosError as exc:
                logger.warning("draft turn failed: %s", exc)
                return DraftReply(warnings=[f"Error: {exc}"])
        return self._wizard_step(text)

    # --- wizard ---

    def _start_wizard(self, lines: list[str]) -> DraftReply:
        self.phase = DescriptionPhase()
        self.collected = Collected()
        return DraftReply(lines + [WELCOME])

    def _wizard_step(self, text: str) -> DraftReply:
        transition = self.phase.advance(self.collected, text)
        self.collected = transition.collected
        phase = transition.phase
        if isinstance(phase, StartDatePhase):
            phase = StartDatePhase(today=self.today)
        reply = DraftReply(lines=list(transition.notes), warnings=list(transition.warnings))

        if transition.action == ReviewAction.CANCEL:
            return self._cancel()
        if transition.action == ReviewAction.ACCEPT:
            return self._accept(self.schema, reply)
        if transition.action == ReviewAction.REFINE and self.schema is not None:
            description = build_llm_description(self.collected.result())
            started = self._start_conversation(description, self.schema)
            if started is None:
                reply.warnings.append("Could not start the AI draft; accept or cancel the wizard draft.")
                return reply
            started.warnings = reply.warnings + started.warnings
            return started

        if isinstance(phase, ReviewPhase) and not isinstance(self.phase, ReviewPhase):
            phase = ReviewPhase(refine_available=self.llm_available)
            self.schema = build_schema_from_wizard(self.collected.result())
            reply.lines.append(render.format_schema_preview(self.schema))
        self.phase = phase
        return reply

    # --- conversation ---

    def _start_conversation(self, description: str, seed: Optional[ImportSchema]) -> Optional[DraftReply]:
        bridge = DraftBridge(self.ctx.services.draft)  # type: ignore[arg-type]
        try:
            opened = bridge.start(description, seed)
        except KairosError as exc:
            logger.warning("draft conversation failed to start: %s", exc)
            return None
        self.bridge = bridge
        return DraftReply(opened.lines)

    def _bridge_reply(self, reply: BridgeReply) -> DraftReply:
        if reply.action == ReviewAction.CANCEL:
            return self._cancel()
        if reply.action == ReviewAction.ACCEPT:
            draft = self.bridge.draft if self.bridge is not None else None
            result = self._accept(draft, DraftReply())
            if not result.done and self.bridge is not None:
                reopened = self.bridge.reopen("Continue editing to fix them.")
                result.lines.extend(reopened.lines)
            return result
        return DraftReply(reply.lines)

    # --- endings ---

    def _accept(self, schema: Optional[ImportSchema], reply: DraftReply) -> DraftReply:
        if schema is None:
            reply.warnings.append("No draft to accept yet.")
            return reply
        if self._cancel_requested.is_set():
            return self._cancel()
        try:
            result = actions.import_schema(self.ctx, schema)
        except SchemaValidationError as exc:
            reply.lines.extend(f"  - {error}" for error in exc.errors)
            reply.warnings.append("Draft has validation errors.")
            return reply
        except KairosError as exc:
            reply.warnings.append(f"Import failed: {exc}")
            return reply

        project = result.project
        self.ctx.state.set_active_project(project.id, project.short_id, project.name)
        self.done = True
        reply.lines.append(render.format_import_result(result).rstrip("\n"))
        reply.done = True
        reply.imported = result
        return reply

    def request_cancel(self) -> None:
        self._cancel_requested.set()
        logger.info("draft cancel requested")

    def _cancel(self) -> DraftReply:
        self.done = True
        self.bridge = None
        self.collected = Collected()
        self.schema = None
        return DraftReply(["Draft cancelled."], done=True)
