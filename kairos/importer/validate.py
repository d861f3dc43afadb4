"""Structural validation of an ImportSchema before it reaches the importer.

Every problem is collected; nothing short-circuits, so a caller can show the
user the full list at once.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from kairos.constants import DATE_FORMAT, DURATION_MODES, NODE_KINDS, WORK_ITEM_STATUSES
from kairos.importer.schema import (
    DefaultsImport,
    DependencyImport,
    ImportSchema,
    NodeImport,
    ProjectImport,
    SessionPolicy,
    WorkItemImport,
)


def parse_iso_date(value: str) -> Optional[date]:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None


def _optional_date(field: str, value: Optional[str]) -> list[str]:
    if not value:
        return []
    if parse_iso_date(value) is None:
        return [f"{field}: invalid date format {value!r} (expected YYYY-MM-DD)"]
    return []


def _validate_project(project: ProjectImport) -> list[str]:
    errors: list[str] = []
    if not project.short_id:
        errors.append("project.short_id is required")
    if not project.name:
        errors.append("project.name is required")
    if not project.domain:
        errors.append("project.domain is required")

    start = None
    if not project.start_date:
        errors.append("project.start_date is required")
    else:
        start = parse_iso_date(project.start_date)
        if start is None:
            errors.append(f"project.start_date: invalid date format {project.start_date!r} (expected YYYY-MM-DD)")

    if project.target_date is not None:
        target = parse_iso_date(project.target_date)
        if target is None:
            errors.append(f"project.target_date: invalid date format {project.target_date!r} (expected YYYY-MM-DD)")
        elif start is not None and target <= start:
            errors.append(
                f"project.target_date {project.target_date!r} must be after start_date {project.start_date!r}"
            )
    return errors


def _validate_session_policy(prefix: str, policy: SessionPolicy) -> list[str]:
    errors: list[str] = []
    for name in ("min_session_min", "max_session_min", "default_session_min"):
        value = getattr(policy, name)
        if value is not None and value <= 0:
            errors.append(f"{prefix}.{name} must be positive")

    lo = policy.min_session_min or 0
    hi = policy.max_session_min or 0
    default = policy.default_session_min or 0
    if lo > 0 and hi > 0 and lo > hi:
        errors.append(f"{prefix}: min_session_min ({lo}) must be <= max_session_min ({hi})")
    if default > 0 and lo > 0 and default < lo:
        errors.append(f"{prefix}: default_session_min ({default}) must be >= min_session_min ({lo})")
    if default > 0 and hi > 0 and default > hi:
        errors.append(f"{prefix}: default_session_min ({default}) must be <= max_session_min ({hi})")
    return errors


def _validate_defaults(defaults: Optional[DefaultsImport]) -> list[str]:
    if defaults is None:
        return []
    errors: list[str] = []
    if defaults.duration_mode and defaults.duration_mode not in DURATION_MODES:
        errors.append(f"defaults.duration_mode: invalid value {defaults.duration_mode!r}")
    if defaults.session_policy is not None:
        errors.extend(_validate_session_policy("defaults.session_policy", defaults.session_policy))
    return errors


def _validate_nodes(nodes: list[NodeImport], node_refs: set[str]) -> list[str]:
    errors: list[str] = []
    for i, node in enumerate(nodes):
        prefix = f"nodes[{i}]"
        if not node.ref:
            errors.append(f"{prefix}.ref is required")
        elif node.ref in node_refs:
            errors.append(f"{prefix}.ref: duplicate ref {node.ref!r}")
        else:
            node_refs.add(node.ref)

        if not node.title:
            errors.append(f"{prefix}.title is required")
        if not node.kind:
            errors.append(f"{prefix}.kind is required")
        elif node.kind not in NODE_KINDS:
            errors.append(f"{prefix}.kind: invalid value {node.kind!r}")

        # Parents must be declared before their children.
        if node.parent_ref and node.parent_ref not in node_refs:
            errors.append(f"{prefix}.parent_ref: ref {node.parent_ref!r} not found (must appear earlier in nodes list)")

        errors.extend(_optional_date(f"{prefix}.due_date", node.due_date))
        errors.extend(_optional_date(f"{prefix}.not_before", node.not_before))
        errors.extend(_optional_date(f"{prefix}.not_after", node.not_after))
        if node.planned_min_budget is not None and node.planned_min_budget < 0:
            errors.append(f"{prefix}.planned_min_budget must not be negative")
    return errors


def _validate_work_items(items: list[WorkItemImport], node_refs: set[str], item_refs: set[str]) -> list[str]:
    errors: list[str] = []
    for i, item in enumerate(items):
        prefix = f"work_items[{i}]"
        if not item.ref:
            errors.append(f"{prefix}.ref is required")
        elif item.ref in item_refs:
            errors.append(f"{prefix}.ref: duplicate ref {item.ref!r}")
        else:
            item_refs.add(item.ref)

        if not item.node_ref:
            errors.append(f"{prefix}.node_ref is required")
        elif item.node_ref not in node_refs:
            errors.append(f"{prefix}.node_ref: ref {item.node_ref!r} not found in nodes")

        if not item.title:
            errors.append(f"{prefix}.title is required")
        if not item.type:
            errors.append(f"{prefix}.type is required")
        if item.status and item.status not in WORK_ITEM_STATUSES:
            errors.append(f"{prefix}.status: invalid value {item.status!r}")
        if item.duration_mode and item.duration_mode not in DURATION_MODES:
            errors.append(f"{prefix}.duration_mode: invalid value {item.duration_mode!r}")
        if item.planned_min is not None and item.planned_min < 0:
            errors.append(f"{prefix}.planned_min must not be negative")
        if item.session_policy is not None:
            errors.extend(_validate_session_policy(f"{prefix}.session_policy", item.session_policy))

        errors.extend(_optional_date(f"{prefix}.due_date", item.due_date))
        errors.extend(_optional_date(f"{prefix}.not_before", item.not_before))
    return errors


def _detect_cycles(deps: list[DependencyImport]) -> list[str]:
    graph: dict[str, list[str]] = {}
    for dep in deps:
        if dep.predecessor_ref and dep.successor_ref and dep.predecessor_ref != dep.successor_ref:
            graph.setdefault(dep.predecessor_ref, []).append(dep.successor_ref)
            graph.setdefault(dep.successor_ref, [])

    visiting: set[str] = set()
    done: set[str] = set()

    def visit(ref: str) -> Optional[str]:
        visiting.add(ref)
        for successor in graph[ref]:
            if successor in visiting:
                return f"circular dependency detected involving {ref!r} and {successor!r}"
            if successor not in done:
                found = visit(successor)
                if found:
                    return found
        visiting.discard(ref)
        done.add(ref)
        return None

    for ref in graph:
        if ref not in done:
            found = visit(ref)
            if found:
                return [found]
    return []


def _validate_dependencies(deps: list[DependencyImport], item_refs: set[str]) -> list[str]:
    errors: list[str] = []
    for i, dep in enumerate(deps):
        prefix = f"dependencies[{i}]"
        for name in ("predecessor_ref", "successor_ref"):
            ref = getattr(dep, name)
            if not ref:
                errors.append(f"{prefix}.{name} is required")
            elif ref not in item_refs:
                errors.append(f"{prefix}.{name}: ref {ref!r} not found in work_items")
        if dep.predecessor_ref and dep.predecessor_ref == dep.successor_ref:
            errors.append(f"{prefix}: self-dependency (predecessor_ref == successor_ref == {dep.predecessor_ref!r})")

    if len(deps) > 1:
        errors.extend(_detect_cycles(deps))
    return errors


def validate_import_schema(schema: ImportSchema) -> list[str]:
    """Return every validation error found in ``schema`` (empty when valid)."""
    errors = _validate_project(schema.project)
    errors.extend(_validate_defaults(schema.defaults))

    node_refs: set[str] = set()
    errors.extend(_validate_nodes(schema.nodes, node_refs))

    item_refs: set[str] = set()
    errors.extend(_validate_work_items(schema.work_items, node_refs, item_refs))
    errors.extend(_validate_dependencies(schema.dependencies, item_refs))
    return errors
