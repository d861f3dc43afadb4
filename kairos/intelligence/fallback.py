"""Deterministic explanation and help generators.

Used whenever the natural-language collaborator is missing or fails, so
explanation-class commands never fail for that reason alone.
"""

from __future__ import annotations

from typing import Optional, Sequence

from kairos.core.models import StatusResponse, WhatNowResponse
from kairos.intelligence.contracts import (
    BlockerTrace,
    ExplanationContext,
    ExplanationFactor,
    HelpAnswer,
    HelpCommandInfo,
    LLMExplanation,
    ProjectWeeklySummary,
    ReasonTrace,
    RecommendationTrace,
    RecommendationTraceItem,
    RiskTrace,
    ShellExample,
    WeeklyReviewTrace,
)

GLOSSARY = {
    "what-now": "Ranks work for a time budget you give it, in minutes.",
    "risk": "How likely a project is to miss its target date at the current pace (on_track, at_risk, critical).",
    "node": "A grouping inside a project plan, such as a week, module or exam.",
    "work item": "A concrete task inside a node with planned minutes.",
    "session": "A logged block of time spent on a work item.",
    "replan": "Recomputes pacing and risk for every active project.",
    "draft": "Guided wizard that builds a project structure from questions.",
}

_SAFE_NEXT = ["kairos status", "kairos what-now", "kairos help"]


def build_recommendation_trace(resp: WhatNowResponse) -> RecommendationTrace:
    trace = RecommendationTrace(mode=resp.mode, requested_min=resp.requested_min, allocated_min=resp.allocated_min)
    for rec in resp.recommendations:
        trace.recommendations.append(
            RecommendationTraceItem(
                work_item_id=rec.work_item_id,
                title=rec.title,
                project_id=rec.project_id,
                allocated_min=rec.allocated_min,
                score=rec.score,
                risk_level=rec.risk_level.value,
                reasons=[ReasonTrace(r.code, r.message, r.weight_delta) for r in rec.reasons],
            )
        )
    trace.blockers = [BlockerTrace(b.entity_id, b.code, b.message) for b in resp.blockers]
    trace.risk_projects = [
        RiskTrace(r.project_id, r.project_name, r.risk_level.value, r.progress_time_pct) for r in resp.top_risk_projects
    ]
    return trace


def build_weekly_trace(status: StatusResponse, period_days: int = 7) -> WeeklyReviewTrace:
    trace = WeeklyReviewTrace(period_days=period_days)
    for project in status.projects:
        trace.project_summaries.append(
            ProjectWeeklySummary(
                project_id=project.project_id,
                project_name=project.project_name,
                planned_min=project.planned_min_total,
                logged_min=project.logged_min_total,
                risk_level=project.risk_level.value,
            )
        )
        trace.total_logged_min += project.logged_min_total
    return trace


def _impact_from_delta(delta: Optional[float]) -> str:
    if delta is None:
        return "low"
    magnitude = abs(delta)
    if magnitude >= 20:
        return "high"
    if magnitude >= 5:
        return "medium"
    return "low"


def _direction_from_delta(delta: Optional[float]) -> str:
    if delta is not None and delta < 0:
        return "push_against"
    return "push_for"


def _risk_to_impact(risk: str) -> str:
    return {"critical": "high", "at_risk": "medium"}.get(risk, "low")


def explain_now(trace: RecommendationTrace) -> LLMExplanation:
    explanation = LLMExplanation(context=ExplanationContext.WHAT_NOW, confidence=1.0)
    explanation.summary_short = (
        f"Recommended {len(trace.recommendations)} item(s) in {trace.mode} mode, "
        f"using {trace.allocated_min} of {trace.requested_min} available minutes."
    )
    explanation.summary_detailed = explanation.summary_short
    if trace.risk_projects:
        top = trace.risk_projects[0]
        explanation.summary_detailed += (
            f" Top risk: {top.project_name} ({top.risk_level}, {top.progress_time_pct:.0f}% complete)."
        )

    for rec in trace.recommendations:
        for reason in rec.reasons:
            explanation.factors.append(
                ExplanationFactor(
                    name=reason.code,
                    impact=_impact_from_delta(reason.weight_delta),
                    direction=_direction_from_delta(reason.weight_delta),
                    evidence_ref_type="score_factor",
                    evidence_ref_key=f"rec.{rec.work_item_id}.reason.{reason.code}",
                    summary=reason.message,
                )
            )
    return explanation


def explain_why_not(trace: RecommendationTrace, candidate_id: str) -> LLMExplanation:
    explanation = LLMExplanation(context=ExplanationContext.WHY_NOT, confidence=1.0)
    for blocker in trace.blockers:
        if blocker.entity_id == candidate_id:
            explanation.summary_short = f"Blocked: {blocker.message}"
            explanation.summary_detailed = (
                f"This item was not recommended because: {blocker.message} (blocker code: {blocker.code})."
            )
            explanation.factors.append(
                ExplanationFactor(
                    name=blocker.code,
                    impact="high",
                    direction="push_against",
                    evidence_ref_type="constraint",
                    evidence_ref_key=f"blocker.{blocker.entity_id}.{blocker.code}",
                    summary=blocker.message,
                )
            )
            return explanation

    explanation.summary_short = "This item was not in the top recommendations."
    explanation.summary_detailed = (
        "The item scored lower than the recommended items based on deadline pressure, "
        "risk level, spacing, and variation factors."
    )
    return explanation


def weekly_review(trace: WeeklyReviewTrace) -> LLMExplanation:
    explanation = LLMExplanation(context=ExplanationContext.WEEKLY_REVIEW, confidence=1.0)
    explanation.summary_short = (
        f"Past {trace.period_days} days: {trace.session_count} sessions, {trace.total_logged_min} minutes "
        f"logged across {len(trace.project_summaries)} project(s)."
    )
    explanation.summary_detailed = explanation.summary_short
    for project in trace.project_summaries:
        pct = project.logged_min / project.planned_min * 100 if project.planned_min > 0 else 0.0
        explanation.factors.append(
            ExplanationFactor(
                name=project.project_name,
                impact=_risk_to_impact(project.risk_level),
                direction="push_for",
                evidence_ref_type="history",
                evidence_ref_key=f"project.{project.project_id}.logged_min",
                summary=(
                    f"{project.logged_min} min logged ({pct:.0f}% of planned), "
                    f"{project.sessions_count} sessions, risk: {project.risk_level}"
                ),
            )
        )
    return explanation


def _score_commands(terms: Sequence[str], commands: Sequence[HelpCommandInfo]) -> list[HelpCommandInfo]:
    scored: list[tuple[int, HelpCommandInfo]] = []
    for cmd in commands:
        path, short = cmd.full_path.lower(), cmd.short.lower()
        hits = sum(1 for term in terms if term in path or term in short)
        if hits:
            scored.append((hits, cmd))
    # sorted() is stable: equal hit counts keep declaration order
    return [cmd for _, cmd in sorted(scored, key=lambda pair: -pair[0])]


def _default_help(commands: Sequence[HelpCommandInfo]) -> HelpAnswer:
    by_path = {cmd.full_path: cmd for cmd in commands}
    examples = [
        ShellExample(by_path[path].full_path, by_path[path].short)
        for path in ("kairos what-now", "kairos status", "kairos project list", "kairos session log")
        if path in by_path
    ]
    return HelpAnswer(
        answer=(
            "Here are some common commands to get started. "
            "Use 'kairos help <command>' for details on any command."
        ),
        examples=examples,
        next_commands=["kairos help", "kairos status", "kairos what-now"],
        confidence=1.0,
        source="deterministic",
    )


def answer_help(question: str, commands: Sequence[HelpCommandInfo]) -> HelpAnswer:
    """Answer a help question by matching it against the command catalog and glossary."""
    terms = question.lower().split()
    if not terms:
        return _default_help(commands)

    matches = _score_commands(terms, commands)
    glossary_hits = [
        f"{term}: {definition}"
        for term, definition in GLOSSARY.items()
        if any(q in term or term in q for q in terms)
    ]

    parts = list(glossary_hits)
    if matches:
        parts.append("Relevant commands:")
    elif not parts:
        parts.append("I couldn't find an exact match. Try 'kairos help <command>' for details on a specific command.")

    return HelpAnswer(
        answer="\n\n".join(parts),
        examples=[ShellExample(cmd.full_path, cmd.short) for cmd in matches[:3]],
        next_commands=list(_SAFE_NEXT),
        confidence=1.0,
        source="deterministic",
    )
