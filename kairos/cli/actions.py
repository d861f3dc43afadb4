"""Service operations shared by the argparse handlers, the built-in verbs and the ask path.

Each function runs one collaborator call (or a short sequence of them),
updates the session context where the call changes it, and returns the text
to show. Collaborator errors propagate to the dispatcher.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

from kairos.cli import render
from kairos.cli.resolve import match_project, resolve_work_item
from kairos.cli.session import SessionState
from kairos.config import KairosConfig, get_config
from kairos.core.errors import SchemaValidationError, ServiceError, UserInputError
from kairos.core.models import (
    ImportResult,
    Project,
    ProjectStatus,
    WhatNowResponse,
    WorkItem,
    WorkItemStatus,
    WorkSessionLog,
)
from kairos.core.ports import Services
from kairos.importer import ImportSchema, load_import_file, validate_import_schema
from kairos.intelligence import fallback
from kairos.intelligence.contracts import HelpAnswer, HelpCommandInfo, LLMExplanation

logger = logging.getLogger(__name__)

_UNSET = object()

UPDATABLE_STATUSES = ("active", "paused", "done")


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class CommandContext:
    """What every command handler needs: collaborators, session context and config."""

    services: Services
    state: SessionState = field(default_factory=SessionState)
    config: KairosConfig = field(default_factory=get_config)

    def projects(self) -> list[Project]:
        """Non-archived projects through the session's short-lived cache."""
        return self.state.cached_projects(lambda: self.services.projects.list_projects(include_archived=False))

    def scope(self) -> Optional[list[str]]:
        return [self.state.active_project_id] if self.state.active_project_id else None


# --- read side ---


def project_tree(ctx: CommandContext, project: Project) -> str:
    nodes = ctx.services.nodes.list_by_project(project.id)
    items = ctx.services.work_items.list_by_project(project.id)
    return render.format_project_tree(project, nodes, items)


def recommend(ctx: CommandContext, minutes: int, project_ids: Optional[Sequence[str]] = None) -> WhatNowResponse:
    resp = ctx.services.what_now.recommend(minutes, project_ids)
    if resp.recommendations:
        ctx.state.last_recommended_item_id = resp.recommendations[0].work_item_id
    return resp


def what_now(ctx: CommandContext, minutes: int, project_ids: Optional[Sequence[str]] = None) -> str:
    logger.debug("what-now: %d min, scope=%s", minutes, project_ids)
    return render.format_what_now(recommend(ctx, minutes, project_ids))


def status(ctx: CommandContext, project_ids: Optional[Sequence[str]] = None, recalc: bool = False) -> str:
    return render.format_status(ctx.services.status.get_status(project_ids, recalc=recalc))


def replan(ctx: CommandContext) -> str:
    if ctx.services.replan is None:
        raise ServiceError("replan service is not configured")
    resp = ctx.services.replan.replan()
    ctx.state.invalidate_projects()
    return render.format_replan(resp)


# --- explanations ---


def _explain(
    ctx: CommandContext,
    llm_call: Callable[[], LLMExplanation],
    deterministic: Callable[[], LLMExplanation],
) -> LLMExplanation:
    if ctx.services.explain is not None:
        try:
            return llm_call()
        except Exception as exc:
            logger.warning("explanation service failed, using deterministic fallback: %s", exc)
    return deterministic()


def explain_now(ctx: CommandContext, minutes: int) -> str:
    resp = recommend(ctx, minutes)
    trace = fallback.build_recommendation_trace(resp)
    explanation = _explain(
        ctx,
        lambda: ctx.services.explain.explain_now(trace),
        lambda: fallback.explain_now(trace),
    )
    return render.format_what_now(resp) + "\n" + render.format_explanation(explanation)


def explain_why_not(ctx: CommandContext, candidate: str, minutes: int = 60) -> str:
    candidate_id = candidate
    try:
        candidate_id = _match_project(ctx, candidate).id
    except UserInputError:
        try:
            candidate_id = resolve_item(ctx, candidate).id
        except UserInputError:
            logger.debug("why-not candidate %r did not resolve; using it verbatim", candidate)

    trace = fallback.build_recommendation_trace(recommend(ctx, minutes))
    explanation = _explain(
        ctx,
        lambda: ctx.services.explain.explain_why_not(trace, candidate_id),
        lambda: fallback.explain_why_not(trace, candidate_id),
    )
    return render.format_explanation(explanation)


def review_weekly(ctx: CommandContext, days: int = 7) -> str:
    trace = fallback.build_weekly_trace(ctx.services.status.get_status(), period_days=days)
    recent = ctx.services.sessions.list_recent(days)
    trace.session_count = len(recent)
    trace.total_logged_min = sum(session.minutes for session in recent)
    explanation = _explain(
        ctx,
        lambda: ctx.services.explain.weekly_review(trace),
        lambda: fallback.weekly_review(trace),
    )
    return render.format_explanation(explanation)


def help_answer(ctx: CommandContext, question: str, commands: Sequence[HelpCommandInfo]) -> HelpAnswer:
    if ctx.services.help is not None:
        try:
            return ctx.services.help.ask(question, commands)
        except Exception as exc:
            logger.warning("help service failed, using deterministic fallback: %s", exc)
    return fallback.answer_help(question, commands)


# --- resolution against the session context ---


def _match_project(ctx: CommandContext, query: str) -> Project:
    return match_project(ctx.services.projects.list_projects(include_archived=True), query)


def resolve_item(ctx: CommandContext, query: str, project_id: str = "") -> WorkItem:
    return resolve_work_item(ctx.services, query.lstrip("#"), project_id or ctx.state.active_project_id)


# --- projects ---


def update_project(
    services: Services,
    project: Project,
    *,
    name: Optional[str] = None,
    domain: Optional[str] = None,
    short_id: Optional[str] = None,
    target_date: object = _UNSET,
    status: Optional[str] = None,
) -> Project:
    """Apply field changes to ``project`` and persist them.

    ``target_date`` left unset keeps the current value; ``None`` clears it.
    ``status="archived"`` writes the other fields first, then archives through
    the repository so the archive timestamp is stamped. Other statuses
    unarchive first when needed.
    """
    if status is not None and status not in UPDATABLE_STATUSES and status != ProjectStatus.ARCHIVED.value:
        raise UserInputError(f"invalid status {status!r} (expected active, paused, done or archived)")

    if name is not None:
        project.name = name
    if domain is not None:
        project.domain = domain
    if short_id is not None:
        project.short_id = short_id.upper()
    if target_date is not _UNSET:
        project.target_date = target_date  # type: ignore[assignment]

    if status == ProjectStatus.ARCHIVED.value:
        services.projects.update(project)
        services.projects.archive(project.id)
        return services.projects.get_by_id(project.id)

    if status is not None:
        if project.status == ProjectStatus.ARCHIVED:
            services.projects.unarchive(project.id)
            project = _carry_fields(services.projects.get_by_id(project.id), project)
        project.status = ProjectStatus(status)
    services.projects.update(project)
    return project


def _carry_fields(fresh: Project, edited: Project) -> Project:
    fresh.name = edited.name
    fresh.domain = edited.domain
    fresh.short_id = edited.short_id
    fresh.target_date = edited.target_date
    return fresh


def create_project(
    ctx: CommandContext, short_id: str, name: str, domain: str, start: date, due: Optional[date] = None
) -> Project:
    project = Project(
        id=new_id(),
        short_id=short_id.upper(),
        name=name,
        domain=domain,
        start_date=start,
        target_date=due,
    )
    ctx.services.projects.create(project)
    ctx.state.invalidate_projects()
    return project


# --- import ---


def import_schema(ctx: CommandContext, schema: ImportSchema) -> ImportResult:
    """Validate, then hand the schema to the import collaborator."""
    errors = validate_import_schema(schema)
    if errors:
        raise SchemaValidationError(errors)
    result = ctx.services.importer.import_schema(schema)
    ctx.state.invalidate_projects()
    logger.info(
        "imported %s: %d nodes, %d items", result.project.short_id, result.node_count, result.work_item_count
    )
    return result


def import_file(ctx: CommandContext, path: str) -> str:
    try:
        schema = load_import_file(Path(path).expanduser())
    except (OSError, ValueError) as exc:
        raise UserInputError(f"could not read import file {path}: {exc}") from exc
    return render.format_import_result(import_schema(ctx, schema))


# --- work sessions ---


def log_session(ctx: CommandContext, item: WorkItem, minutes: int, note: str = "", units_done: int = 0) -> str:
    if minutes <= 0:
        raise UserInputError("Invalid duration.")
    ctx.services.sessions.create(
        WorkSessionLog(
            id=new_id(),
            work_item_id=item.id,
            minutes=minutes,
            started_at=datetime.now(),
            units_done=units_done,
            note=note,
        )
    )
    ctx.state.set_active_item(item.id, item.title, item.seq)
    ctx.state.last_duration = minutes
    ctx.state.invalidate_projects()
    message = f"✔ Logged {render.format_minutes(minutes)} to {item.title}"
    if units_done > 0:
        message += f" (+{units_done} units)"
    return message


def start_item(ctx: CommandContext, item: WorkItem) -> str:
    item.status = WorkItemStatus.IN_PROGRESS
    ctx.services.work_items.update(item)
    ctx.state.set_active_item(item.id, item.title, item.seq)
    return f"▶ Started: {item.title}"


def finish_item(ctx: CommandContext, item: WorkItem) -> str:
    item.status = WorkItemStatus.DONE
    ctx.services.work_items.update(item)
    if ctx.state.active_item_id == item.id:
        ctx.state.clear_item_context()
    return f"✔ Done: {item.title}"
