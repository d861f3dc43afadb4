"""Contracts shared with the natural-language collaborator.

The collaborator turns free text into a ``ParsedIntent``; the confirmation
policy decides the ``ExecutionState`` the session engine acts on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from kairos.importer.schema import ImportSchema

ArgValue = Union[str, int, float, bool, None]


class IntentName(str, Enum):
    WHAT_NOW = "what_now"
    STATUS = "status"
    REPLAN = "replan"
    PROJECT_ADD = "project_add"
    PROJECT_IMPORT = "project_import"
    PROJECT_UPDATE = "project_update"
    PROJECT_ARCHIVE = "project_archive"
    PROJECT_REMOVE = "project_remove"
    NODE_ADD = "node_add"
    NODE_UPDATE = "node_update"
    NODE_REMOVE = "node_remove"
    WORK_ADD = "work_add"
    WORK_UPDATE = "work_update"
    WORK_DONE = "work_done"
    WORK_REMOVE = "work_remove"
    SESSION_LOG = "session_log"
    SESSION_REMOVE = "session_remove"
    TEMPLATE_LIST = "template_list"
    TEMPLATE_SHOW = "template_show"
    TEMPLATE_DRAFT = "template_draft"
    TEMPLATE_VALIDATE = "template_validate"
    PROJECT_INIT_FROM_TEMPLATE = "project_init_from_template"
    EXPLAIN_NOW = "explain_now"
    EXPLAIN_WHY_NOT = "explain_why_not"
    REVIEW_WEEKLY = "review_weekly"
    SIMULATE = "simulate"


WRITE_INTENTS = frozenset(
    {
        IntentName.REPLAN,
        IntentName.PROJECT_ADD,
        IntentName.PROJECT_IMPORT,
        IntentName.PROJECT_UPDATE,
        IntentName.PROJECT_ARCHIVE,
        IntentName.PROJECT_REMOVE,
        IntentName.NODE_ADD,
        IntentName.NODE_UPDATE,
        IntentName.NODE_REMOVE,
        IntentName.WORK_ADD,
        IntentName.WORK_UPDATE,
        IntentName.WORK_DONE,
        IntentName.WORK_REMOVE,
        IntentName.SESSION_LOG,
        IntentName.SESSION_REMOVE,
        IntentName.TEMPLATE_DRAFT,
        IntentName.TEMPLATE_VALIDATE,
        IntentName.PROJECT_INIT_FROM_TEMPLATE,
    }
)


def is_write_intent(name: IntentName) -> bool:
    return name in WRITE_INTENTS


class IntentRisk(str, Enum):
    READ_ONLY = "read_only"
    WRITE = "write"


class ExecutionState(str, Enum):
    EXECUTED = "executed"
    NEEDS_CONFIRMATION = "needs_confirmation"
    NEEDS_CLARIFICATION = "needs_clarification"
    REJECTED = "rejected"


@dataclass
class ParsedIntent:
    intent: IntentName
    risk: IntentRisk = IntentRisk.READ_ONLY
    arguments: dict[str, ArgValue] = field(default_factory=dict)
    confidence: float = 0.0
    requires_confirmation: bool = False
    clarification_options: list[str] = field(default_factory=list)
    rationale: str = ""


@dataclass
class AskResolution:
    """Externally visible verdict of one ``ask`` invocation."""

    parsed_intent: Optional[ParsedIntent]
    execution_state: ExecutionState
    execution_message: str = ""
    command_hint: str = ""


@dataclass(frozen=True)
class ConfirmationPolicy:
    """When a parsed intent may run without asking the user."""

    auto_execute_read_threshold: float = 0.85

    def evaluate(self, intent: ParsedIntent) -> ExecutionState:
        if requires_confirmation(intent):
            return ExecutionState.NEEDS_CONFIRMATION
        if intent.confidence >= self.auto_execute_read_threshold:
            return ExecutionState.EXECUTED
        return ExecutionState.NEEDS_CLARIFICATION


def requires_confirmation(intent: ParsedIntent) -> bool:
    """Write risk, as parsed or as implied by the intent kind, always needs a yes."""
    return intent.risk == IntentRisk.WRITE or is_write_intent(intent.intent)


def enforce_write_safety(intent: ParsedIntent) -> None:
    """Force write intents to carry write risk and the confirmation flag."""
    if requires_confirmation(intent):
        intent.risk = IntentRisk.WRITE
        intent.requires_confirmation = True


# --- Explanations ---


class ExplanationContext(str, Enum):
    WHAT_NOW = "what_now"
    WHY_NOT = "why_not"
    WEEKLY_REVIEW = "weekly_review"


@dataclass
class ExplanationFactor:
    name: str
    impact: str  # "high" | "medium" | "low"
    direction: str  # "push_for" | "push_against"
    evidence_ref_type: str
    evidence_ref_key: str
    summary: str


@dataclass
class LLMExplanation:
    context: ExplanationContext
    summary_short: str = ""
    summary_detailed: str = ""
    factors: list[ExplanationFactor] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class ReasonTrace:
    code: str
    message: str
    weight_delta: Optional[float] = None


@dataclass
class RecommendationTraceItem:
    work_item_id: str
    title: str
    project_id: str
    allocated_min: int
    score: float
    risk_level: str
    reasons: list[ReasonTrace] = field(default_factory=list)


@dataclass
class BlockerTrace:
    entity_id: str
    code: str
    message: str


@dataclass
class RiskTrace:
    project_id: str
    project_name: str
    risk_level: str
    progress_time_pct: float


@dataclass
class RecommendationTrace:
    mode: str
    requested_min: int
    allocated_min: int
    recommendations: list[RecommendationTraceItem] = field(default_factory=list)
    blockers: list[BlockerTrace] = field(default_factory=list)
    risk_projects: list[RiskTrace] = field(default_factory=list)


@dataclass
class ProjectWeeklySummary:
    project_id: str
    project_name: str
    planned_min: int
    logged_min: int
    risk_level: str
    sessions_count: int = 0


@dataclass
class WeeklyReviewTrace:
    period_days: int = 7
    total_logged_min: int = 0
    session_count: int = 0
    project_summaries: list[ProjectWeeklySummary] = field(default_factory=list)


# --- Help ---


@dataclass(frozen=True)
class HelpCommandInfo:
    full_path: str
    short: str


@dataclass(frozen=True)
class ShellExample:
    command: str
    description: str


@dataclass
class HelpAnswer:
    answer: str
    examples: list[ShellExample] = field(default_factory=list)
    next_commands: list[str] = field(default_factory=list)
    confidence: float = 0.0
    source: str = "llm"


@dataclass
class HelpChat:
    """Opaque conversation handle plus the running transcript."""

    handle: object
    turns: list[tuple[str, str]] = field(default_factory=list)


# --- Project drafting ---


class DraftStatus(str, Enum):
    GATHERING = "gathering"
    READY = "ready"


@dataclass
class DraftTurn:
    role: str  # "user" | "assistant"
    content: str


@dataclass
class DraftConversation:
    """State returned by every draft collaborator call."""

    turns: list[DraftTurn] = field(default_factory=list)
    draft: Optional[ImportSchema] = None
    status: DraftStatus = DraftStatus.GATHERING
    llm_message: str = ""
