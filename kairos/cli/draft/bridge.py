"""Free-form refinement of a project draft through the draft collaborator.

The bridge is only constructed when a ``DraftService`` exists. It tracks
whether the conversation is still gathering details or has a draft ready for
review, and tells its driver when the user accepts or cancels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from kairos.cli import render
from kairos.cli.draft.phases import ReviewAction
from kairos.core.ports import DraftService
from kairos.importer.schema import ImportSchema
from kairos.intelligence.contracts import DraftConversation, DraftStatus

logger = logging.getLogger(__name__)

REVIEW_PROMPT = "[a]ccept  [e]dit  [c]ancel:"


@dataclass
class BridgeReply:
    lines: list[str] = field(default_factory=list)
    action: Optional[ReviewAction] = None


class DraftBridge:
    def __init__(self, service: DraftService) -> None:
        self.service = service
        self.conversation: Optional[DraftConversation] = None

    @property
    def status(self) -> DraftStatus:
        if self.conversation is None:
            return DraftStatus.GATHERING
        return self.conversation.status

    @property
    def draft(self) -> Optional[ImportSchema]:
        return self.conversation.draft if self.conversation else None

    @property
    def prompt(self) -> str:
        return REVIEW_PROMPT if self.status == DraftStatus.READY else ""

    def start(self, description: str, seed: Optional[ImportSchema] = None) -> BridgeReply:
        """Open the conversation, optionally seeded with a compiled schema.

        Collaborator errors propagate so the caller can fall back to the wizard.
        """
        if seed is not None:
            self.conversation = self.service.start_with_draft(description, seed)
        else:
            self.conversation = self.service.start(description)
        return BridgeReply(self._turn_lines())

    def handle(self, text: str) -> BridgeReply:
        if self.conversation is None:
            raise RuntimeError("draft conversation has not been started")
        if self.status == DraftStatus.READY:
            return self._review(text)
        return self._gather(text)

    def reopen(self, message: str) -> BridgeReply:
        """Return to gathering after a rejected accept."""
        if self.conversation is not None:
            self.conversation.status = DraftStatus.GATHERING
        return BridgeReply([message])

    def _gather(self, text: str) -> BridgeReply:
        if not text:
            return BridgeReply()
        command = text.lower()
        if command in ("/show", "/draft"):
            if self.draft is None:
                return BridgeReply(["No draft yet."])
            return BridgeReply([render.format_schema_preview(self.draft)])
        if command == "/accept":
            if self.draft is None:
                return BridgeReply(["No draft to accept yet."])
            self.conversation.status = DraftStatus.READY  # type: ignore[union-attr]
            return BridgeReply()

        self.conversation = self.service.next_turn(self.conversation, text)  # type: ignore[arg-type]
        return BridgeReply(self._turn_lines())

    def _review(self, text: str) -> BridgeReply:
        choice = text.lower()
        if choice in ("a", "accept"):
            return BridgeReply(action=ReviewAction.ACCEPT)
        if choice in ("c", "cancel"):
            return BridgeReply(action=ReviewAction.CANCEL)
        self.conversation.status = DraftStatus.GATHERING  # type: ignore[union-attr]
        if choice in ("e", "edit", ""):
            return BridgeReply(["What would you like to change?"])
        # anything else is a refinement instruction
        return self._gather(text)

    def _turn_lines(self) -> list[str]:
        conversation = self.conversation
        lines = []
        if conversation is not None and conversation.llm_message:
            lines.append(conversation.llm_message)
        if conversation is not None and conversation.status == DraftStatus.READY and conversation.draft is not None:
            logger.debug("draft ready: %d nodes", len(conversation.draft.nodes))
            lines.append(render.format_schema_preview(conversation.draft))
        return lines
