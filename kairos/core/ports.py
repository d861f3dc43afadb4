"""Narrow interfaces to the collaborators the session engine drives.

Repositories, the scheduler, status/replan services and the natural-language
services live outside this package; a backend hands them over as one
``Services`` bundle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol, Sequence

from kairos.core.models import (
    ImportResult,
    PlanNode,
    Project,
    ReplanResponse,
    StatusResponse,
    Template,
    WhatNowResponse,
    WorkItem,
    WorkSessionLog,
)
from kairos.importer.schema import ImportSchema
from kairos.intelligence.contracts import (
    AskResolution,
    DraftConversation,
    HelpAnswer,
    HelpChat,
    HelpCommandInfo,
    LLMExplanation,
    RecommendationTrace,
    WeeklyReviewTrace,
)


class ProjectRepository(Protocol):
    """Lookups raise ``NotFoundError`` for unknown identifiers."""

    def create(self, project: Project) -> None: ...

    def get_by_id(self, project_id: str) -> Project: ...

    def list_projects(self, include_archived: bool = False) -> list[Project]: ...

    def update(self, project: Project) -> None: ...

    def archive(self, project_id: str) -> None:
        """Soft-delete: set status archived and stamp ``archived_at``."""
        ...

    def unarchive(self, project_id: str) -> None: ...

    def delete(self, project_id: str) -> None: ...


class NodeRepository(Protocol):
    def create(self, node: PlanNode) -> None: ...

    def get_by_id(self, node_id: str) -> PlanNode: ...

    def list_by_project(self, project_id: str) -> list[PlanNode]: ...

    def list_children(self, parent_id: str) -> list[PlanNode]: ...

    def update(self, node: PlanNode) -> None: ...

    def delete(self, node_id: str) -> None: ...


class WorkItemRepository(Protocol):
    def create(self, item: WorkItem) -> None: ...

    def get_by_id(self, item_id: str) -> WorkItem: ...

    def list_by_project(self, project_id: str) -> list[WorkItem]: ...

    def list_by_node(self, node_id: str) -> list[WorkItem]: ...

    def update(self, item: WorkItem) -> None: ...

    def archive(self, item_id: str) -> None: ...

    def delete(self, item_id: str) -> None: ...


class SessionRepository(Protocol):
    def create(self, session: WorkSessionLog) -> None: ...

    def list_by_work_item(self, item_id: str) -> list[WorkSessionLog]: ...

    def list_recent(self, days: int) -> list[WorkSessionLog]: ...

    def delete(self, session_id: str) -> None: ...


class WhatNowService(Protocol):
    def recommend(self, available_min: int, project_ids: Optional[Sequence[str]] = None) -> WhatNowResponse: ...


class StatusService(Protocol):
    def get_status(self, project_ids: Optional[Sequence[str]] = None, recalc: bool = False) -> StatusResponse:
        """``recalc`` forces risk and progress to be recomputed before reporting."""
        ...


class ReplanService(Protocol):
    def replan(self) -> ReplanResponse: ...


class ImportService(Protocol):
    """Persists a validated schema and reports what it created."""

    def import_schema(self, schema: ImportSchema) -> ImportResult: ...


class TemplateService(Protocol):
    def list_templates(self) -> list[Template]: ...

    def get(self, name: str) -> Template: ...

    def init_project(
        self, template_name: str, name: str, short_id: str, start_date: date, due_date: Optional[date] = None
    ) -> Project: ...


class IntentService(Protocol):
    def parse(self, text: str) -> AskResolution: ...


class ExplainService(Protocol):
    def explain_now(self, trace: RecommendationTrace) -> LLMExplanation: ...

    def explain_why_not(self, trace: RecommendationTrace, candidate_id: str) -> LLMExplanation: ...

    def weekly_review(self, trace: WeeklyReviewTrace) -> LLMExplanation: ...


class HelpService(Protocol):
    def ask(self, question: str, commands: Sequence[HelpCommandInfo]) -> HelpAnswer: ...

    def start_chat(self, question: str, commands: Sequence[HelpCommandInfo]) -> tuple[HelpChat, HelpAnswer]: ...

    def next_turn(self, chat: HelpChat, question: str) -> HelpAnswer: ...


class DraftService(Protocol):
    def start(self, description: str) -> DraftConversation: ...

    def next_turn(self, conversation: DraftConversation, message: str) -> DraftConversation: ...

    def start_with_draft(self, description: str, draft: ImportSchema) -> DraftConversation: ...


@dataclass
class Services:
    """Everything the session engine may call. Intelligence services are optional."""

    projects: ProjectRepository
    nodes: NodeRepository
    work_items: WorkItemRepository
    sessions: SessionRepository
    what_now: WhatNowService
    status: StatusService
    importer: ImportService
    replan: Optional[ReplanService] = None
    templates: Optional[TemplateService] = None
    intent: Optional[IntentService] = None
    explain: Optional[ExplainService] = None
    help: Optional[HelpService] = None
    draft: Optional[DraftService] = None
