"""Data exchanged with the planner's collaborators.

These mirror what the repositories and the scheduling/status services hand
back; the session engine reads them but never computes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    DONE = "done"
    ARCHIVED = "archived"


class WorkItemStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    SKIPPED = "skipped"
    ARCHIVED = "archived"


class RiskLevel(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    CRITICAL = "critical"


@dataclass
class Project:
    id: str
    short_id: str
    name: str
    start_date: date
    domain: str = ""
    target_date: Optional[date] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    archived_at: Optional[datetime] = None

    @property
    def display_id(self) -> str:
        return self.short_id or self.id[:8]


@dataclass
class PlanNode:
    id: str
    project_id: str
    title: str
    kind: str = "generic"
    seq: int = 0
    parent_id: Optional[str] = None
    order_index: int = 0
    due_date: Optional[date] = None
    planned_min_budget: Optional[int] = None


@dataclass
class WorkItem:
    id: str
    node_id: str
    project_id: str
    title: str
    type: str = "task"
    seq: int = 0
    status: WorkItemStatus = WorkItemStatus.TODO
    planned_min: int = 0
    logged_min: int = 0
    due_date: Optional[date] = None
    min_session_min: int = 15
    max_session_min: int = 60
    default_session_min: int = 30


@dataclass
class WorkSessionLog:
    id: str
    work_item_id: str
    minutes: int
    started_at: datetime
    units_done: int = 0
    note: str = ""


@dataclass
class Template:
    name: str
    description: str = ""
    domain: str = ""
    node_count: int = 0
    work_item_count: int = 0


@dataclass
class RecommendationReason:
    code: str
    message: str
    weight_delta: Optional[float] = None


@dataclass
class WorkSlice:
    """One ranked recommendation from the scheduler."""

    work_item_id: str
    title: str
    project_id: str
    allocated_min: int
    score: float = 0.0
    work_item_seq: int = 0
    node_id: str = ""
    due_date: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.ON_TRACK
    reasons: list[RecommendationReason] = field(default_factory=list)


@dataclass
class ConstraintBlocker:
    entity_id: str
    code: str
    message: str
    entity_type: str = "work_item"


@dataclass
class RiskSummary:
    project_id: str
    project_name: str
    risk_level: RiskLevel
    progress_time_pct: float = 0.0
    due_date: Optional[str] = None


@dataclass
class WhatNowResponse:
    mode: str
    requested_min: int
    allocated_min: int
    recommendations: list[WorkSlice] = field(default_factory=list)
    blockers: list[ConstraintBlocker] = field(default_factory=list)
    top_risk_projects: list[RiskSummary] = field(default_factory=list)
    policy_messages: list[str] = field(default_factory=list)

    @property
    def unallocated_min(self) -> int:
        return max(self.requested_min - self.allocated_min, 0)


@dataclass
class ProjectStatusView:
    project_id: str
    project_name: str
    status: ProjectStatus = ProjectStatus.ACTIVE
    risk_level: RiskLevel = RiskLevel.ON_TRACK
    planned_min_total: int = 0
    logged_min_total: int = 0
    due_date: Optional[str] = None
    days_left: Optional[int] = None
    progress_time_pct: float = 0.0
    notes: list[str] = field(default_factory=list)

    @property
    def remaining_min_total(self) -> int:
        return max(self.planned_min_total - self.logged_min_total, 0)


@dataclass
class StatusResponse:
    projects: list[ProjectStatusView] = field(default_factory=list)
    blockers: list[ConstraintBlocker] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    mode: str = "balanced"
    policy_message: str = ""


@dataclass
class ReplanDelta:
    project_id: str
    project_name: str
    risk_before: RiskLevel
    risk_after: RiskLevel


@dataclass
class ReplanResponse:
    recomputed_projects: int
    deltas: list[ReplanDelta] = field(default_factory=list)
    mode_after: str = "balanced"
    warnings: list[str] = field(default_factory=list)


@dataclass
class ImportResult:
    project: Project
    node_count: int
    work_item_count: int
    dependency_count: int = 0
