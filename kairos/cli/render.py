"""Plain-text formatting of collaborator results for the shell and the TUI."""

from __future__ import annotations

from typing import Sequence

from kairos.core.models import (
    ImportResult,
    PlanNode,
    Project,
    ReplanResponse,
    StatusResponse,
    Template,
    WhatNowResponse,
    WorkItem,
    WorkItemStatus,
    WorkSessionLog,
)
from kairos.importer.schema import ImportSchema
from kairos.intelligence.contracts import AskResolution, ExecutionState, HelpAnswer, HelpCommandInfo, LLMExplanation

_STATUS_MARK = {
    WorkItemStatus.TODO: "○",
    WorkItemStatus.IN_PROGRESS: "◐",
    WorkItemStatus.DONE: "●",
    WorkItemStatus.SKIPPED: "–",
    WorkItemStatus.ARCHIVED: "×",
}

_RISK_LABEL = {"on_track": "on track", "at_risk": "at risk", "critical": "CRITICAL"}


def format_minutes(value: int) -> str:
    if value >= 60:
        hours, rest = divmod(value, 60)
        return f"{hours}h{rest:02d}m" if rest else f"{hours}h"
    return f"{value}m"


def format_projects(projects: Sequence[Project]) -> str:
    if not projects:
        return "No projects. Create one with 'project add' or 'draft'.\n"
    lines = []
    for project in projects:
        due = f"  due {project.target_date.isoformat()}" if project.target_date else ""
        lines.append(f"  {project.display_id:<8} {project.name}  [{project.status.value}]{due}")
    return "\n".join(lines) + "\n"


def format_project_tree(project: Project, nodes: Sequence[PlanNode], items: Sequence[WorkItem]) -> str:
    by_node: dict[str, list[WorkItem]] = {}
    for item in items:
        by_node.setdefault(item.node_id, []).append(item)

    lines = [f"{project.name} ({project.display_id})"]
    if project.target_date:
        lines[0] += f"  due {project.target_date.isoformat()}"
    ordered = sorted(nodes, key=lambda n: n.order_index)
    for node in ordered:
        due = f"  due {node.due_date.isoformat()}" if node.due_date else ""
        lines.append(f"  #{node.seq} {node.title} [{node.kind}]{due}")
        for item in by_node.get(node.id, []):
            mark = _STATUS_MARK.get(item.status, "?")
            progress = f"{format_minutes(item.logged_min)}/{format_minutes(item.planned_min)}"
            lines.append(f"      {mark} #{item.seq} {item.title} ({item.type}, {progress})")
    if not ordered:
        lines.append("  (empty)")
    return "\n".join(lines) + "\n"


def format_work_item(item: WorkItem) -> str:
    due = item.due_date.isoformat() if item.due_date else "-"
    return (
        f"#{item.seq} {item.title}\n"
        f"  type: {item.type}  status: {item.status.value}\n"
        f"  planned: {format_minutes(item.planned_min)}  logged: {format_minutes(item.logged_min)}  due: {due}\n"
        f"  session: {item.min_session_min}-{item.max_session_min}m (default {item.default_session_min}m)\n"
    )


def format_node(node: PlanNode, items: Sequence[WorkItem]) -> str:
    lines = [f"#{node.seq} {node.title} [{node.kind}]"]
    if node.due_date:
        lines.append(f"  due: {node.due_date.isoformat()}")
    if node.planned_min_budget:
        lines.append(f"  budget: {format_minutes(node.planned_min_budget)}")
    for item in items:
        lines.append(f"  {_STATUS_MARK.get(item.status, '?')} #{item.seq} {item.title}")
    return "\n".join(lines) + "\n"


def format_sessions(sessions: Sequence[WorkSessionLog]) -> str:
    if not sessions:
        return "No sessions logged.\n"
    lines = []
    for session in sessions:
        note = f"  {session.note}" if session.note else ""
        minutes = format_minutes(session.minutes)
        lines.append(f"  {session.started_at:%Y-%m-%d %H:%M}  {minutes:>6}  {session.id[:8]}{note}")
    return "\n".join(lines) + "\n"


def format_what_now(resp: WhatNowResponse) -> str:
    lines = [f"What now ({resp.mode} mode, {resp.allocated_min}/{resp.requested_min} min allocated)"]
    if not resp.recommendations:
        lines.append("  Nothing to recommend.")
    for i, rec in enumerate(resp.recommendations, 1):
        seq = f"#{rec.work_item_seq} " if rec.work_item_seq else ""
        lines.append(f"  {i}. {seq}{rec.title}  {format_minutes(rec.allocated_min)}  (score {rec.score:.1f})")
        for reason in rec.reasons[:2]:
            lines.append(f"       - {reason.message}")
    if resp.unallocated_min:
        lines.append(f"  {resp.unallocated_min} min unallocated.")
    for blocker in resp.blockers:
        lines.append(f"  blocked: {blocker.message}")
    for message in resp.policy_messages:
        lines.append(f"  note: {message}")
    return "\n".join(lines) + "\n"


def format_status(resp: StatusResponse) -> str:
    if not resp.projects:
        return "No active projects.\n"
    lines = []
    for project in resp.projects:
        risk = _RISK_LABEL.get(project.risk_level.value, project.risk_level.value)
        due = f"  due {project.due_date}" if project.due_date else ""
        lines.append(
            f"  {project.project_name:<28} {risk:<9} "
            f"{format_minutes(project.logged_min_total)}/{format_minutes(project.planned_min_total)}{due}"
        )
    if resp.policy_message:
        lines.append(f"  {resp.policy_message}")
    for warning in resp.warnings:
        lines.append(f"  warning: {warning}")
    return "\n".join(lines) + "\n"


def format_replan(resp: ReplanResponse) -> str:
    lines = [f"Replanned {resp.recomputed_projects} project(s); mode now {resp.mode_after}."]
    for delta in resp.deltas:
        if delta.risk_before != delta.risk_after:
            lines.append(f"  {delta.project_name}: {delta.risk_before.value} → {delta.risk_after.value}")
    for warning in resp.warnings:
        lines.append(f"  warning: {warning}")
    return "\n".join(lines) + "\n"


def format_templates(templates: Sequence[Template]) -> str:
    if not templates:
        return "No templates.\n"
    return "\n".join(f"  {t.name:<24} {t.description}" for t in templates) + "\n"


def format_template(template: Template) -> str:
    return (
        f"{template.name}\n  {template.description}\n"
        f"  domain: {template.domain or '-'}  nodes: {template.node_count}  work items: {template.work_item_count}\n"
    )


def format_import_result(result: ImportResult) -> str:
    return (
        f"✔ Imported {result.project.name} [{result.project.short_id}] — "
        f"{result.node_count} nodes, {result.work_item_count} items, {result.dependency_count} deps\n"
    )


def format_schema_preview(schema: ImportSchema) -> str:
    project = schema.project
    lines = [f"{project.name} [{project.short_id}]  {project.start_date} → {project.target_date or 'open'}"]
    items_by_node: dict[str, int] = {}
    minutes_by_node: dict[str, int] = {}
    for item in schema.work_items:
        items_by_node[item.node_ref] = items_by_node.get(item.node_ref, 0) + 1
        minutes_by_node[item.node_ref] = minutes_by_node.get(item.node_ref, 0) + (item.planned_min or 0)
    for node in schema.nodes:
        due = f"  due {node.due_date}" if node.due_date else ""
        count = items_by_node.get(node.ref, 0)
        lines.append(
            f"  {node.order:>2}. {node.title} [{node.kind}]{due}  "
            f"{count} item(s), {format_minutes(minutes_by_node.get(node.ref, 0))}"
        )
    lines.append(f"  {len(schema.nodes)} nodes, {len(schema.work_items)} work items")
    return "\n".join(lines) + "\n"


def format_ask_resolution(resolution: AskResolution) -> str:
    intent = resolution.parsed_intent
    lines = []
    if intent is not None:
        lines.append(f"Intent: {intent.intent.value} ({intent.risk.value}, confidence {intent.confidence:.2f})")
    if resolution.execution_message:
        lines.append(resolution.execution_message)
    if resolution.execution_state == ExecutionState.NEEDS_CLARIFICATION and intent and intent.clarification_options:
        lines.append("Did you mean:")
        lines.extend(f"  - {option}" for option in intent.clarification_options)
    if resolution.execution_state == ExecutionState.REJECTED and not resolution.execution_message:
        lines.append("Could not map that to a known command.")
    if resolution.command_hint:
        lines.append(f"Command: kairos {resolution.command_hint}")
    return "\n".join(lines) + "\n"


def format_explanation(explanation: LLMExplanation) -> str:
    lines = [explanation.summary_detailed or explanation.summary_short]
    for factor in explanation.factors:
        arrow = "↑" if factor.direction == "push_for" else "↓"
        lines.append(f"  {arrow} {factor.name} [{factor.impact}] {factor.summary}")
    return "\n".join(lines) + "\n"


def format_help_answer(answer: HelpAnswer) -> str:
    lines = [answer.answer]
    for example in answer.examples:
        lines.append(f"  {example.command:<32} {example.description}")
    if answer.next_commands:
        lines.append("Try: " + ", ".join(answer.next_commands))
    return "\n".join(lines) + "\n"


def format_command_list(commands: Sequence[HelpCommandInfo]) -> str:
    lines = ["Commands:"]
    width = max((len(cmd.full_path) for cmd in commands), default=0)
    for cmd in commands:
        lines.append(f"  {cmd.full_path:<{width}}  {cmd.short}")
    lines.append("Session verbs: use, inspect, log, start, finish, context, clear, exit")
    lines.append("Type 'help <question>' to ask, or 'help chat' for a conversation.")
    return "\n".join(lines) + "\n"
