"""Data collected by the structure wizard and its compilation into an ImportSchema."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from kairos.importer.schema import (
    DefaultsImport,
    ImportSchema,
    NodeImport,
    ProjectImport,
    SessionPolicy,
    WorkItemImport,
)
from kairos.importer.validate import parse_iso_date


@dataclass(frozen=True)
class Group:
    """A run of ``count`` similar nodes, e.g. "Chapter" x 12."""

    label: str
    count: int
    kind: str = "module"
    days_per: int = 0  # 0 = spread to the deadline, or no due dates


@dataclass(frozen=True)
class WorkItemTemplate:
    title: str
    type: str = "task"
    planned_min: int = 0


@dataclass(frozen=True)
class SpecialNode:
    """A one-off node such as an exam or milestone."""

    title: str
    kind: str = "assessment"
    due_date: str = ""  # empty = the project deadline
    work_items: tuple[WorkItemTemplate, ...] = ()


@dataclass(frozen=True)
class WizardResult:
    description: str
    start_date: str
    deadline: str = ""
    groups: tuple[Group, ...] = ()
    work_items: tuple[WorkItemTemplate, ...] = ()
    special_nodes: tuple[SpecialNode, ...] = ()


def generate_short_id(description: str) -> str:
    """Up to four leading letters of the description, padded with X to three, plus ``01``."""
    letters = [ch for ch in description.upper() if "A" <= ch <= "Z"][:4]
    while len(letters) < 3:
        letters.append("X")
    return "".join(letters) + "01"


class _Refs:
    """Per-entity counters; every generated reference is unique."""

    def __init__(self) -> None:
        self.nodes = 0
        self.items = 0

    def next_node(self) -> tuple[str, int]:
        self.nodes += 1
        return f"n{self.nodes}", self.nodes

    def next_item(self) -> str:
        self.items += 1
        return f"w{self.items}"


def _budget(templates: tuple[WorkItemTemplate, ...]) -> Optional[int]:
    total = sum(t.planned_min for t in templates)
    return total if total > 0 else None


def _stamp(schema: ImportSchema, refs: _Refs, node_ref: str, templates: tuple[WorkItemTemplate, ...]) -> None:
    for template in templates:
        schema.work_items.append(
            WorkItemImport(
                ref=refs.next_item(),
                node_ref=node_ref,
                title=template.title,
                type=template.type,
                planned_min=template.planned_min if template.planned_min > 0 else None,
            )
        )


def build_schema_from_wizard(result: WizardResult) -> ImportSchema:
    """Compile wizard answers into an import schema.

    Regular nodes come first, one per group member, titled "{label} {n}".
    A group with ``days_per`` advances a date cursor shared by all groups;
    otherwise due dates are spread linearly from start to deadline. Special
    nodes follow, continuing the same order and reference counters.
    """
    schema = ImportSchema(
        project=ProjectImport(
            short_id=generate_short_id(result.description),
            name=result.description,
            domain="education",
            start_date=result.start_date,
            target_date=result.deadline or None,
        ),
        defaults=DefaultsImport(
            duration_mode="estimate",
            session_policy=SessionPolicy(
                min_session_min=15, max_session_min=60, default_session_min=30, splittable=True
            ),
        ),
        nodes=[],
        work_items=[],
    )

    start = parse_iso_date(result.start_date)
    deadline = parse_iso_date(result.deadline) if result.deadline else None
    total_nodes = sum(group.count for group in result.groups)
    budget = _budget(result.work_items)
    refs = _Refs()
    cursor = start

    for group in result.groups:
        for i in range(group.count):
            node_ref, order = refs.next_node()
            due: Optional[str] = None
            if group.days_per > 0 and cursor is not None:
                cursor = cursor + timedelta(days=group.days_per)
                due = cursor.isoformat()
            elif deadline is not None and start is not None and total_nodes > 0:
                total_days = (deadline - start).days
                due = (start + timedelta(days=int(total_days * order / total_nodes))).isoformat()

            schema.nodes.append(
                NodeImport(
                    ref=node_ref,
                    title=f"{group.label} {i + 1}",
                    kind=group.kind,
                    order=order,
                    due_date=due,
                    planned_min_budget=budget,
                )
            )
            _stamp(schema, refs, node_ref, result.work_items)

    for special in result.special_nodes:
        node_ref, order = refs.next_node()
        schema.nodes.append(
            NodeImport(
                ref=node_ref,
                title=special.title,
                kind=special.kind,
                order=order,
                due_date=special.due_date or result.deadline or None,
                planned_min_budget=_budget(special.work_items),
            )
        )
        _stamp(schema, refs, node_ref, special.work_items)

    return schema


def build_llm_description(result: WizardResult) -> str:
    """Plain-language summary of the wizard answers, used to seed a draft conversation."""
    parts = [result.description, f"\nStart date: {result.start_date}"]
    if result.deadline:
        parts.append(f"\nDeadline: {result.deadline}")

    groups = []
    for group in result.groups:
        text = f"{group.count} {group.label}s"
        if group.days_per > 0:
            text += f" ({group.days_per} days each)"
        groups.append(text)
    parts.append("\nStructure: " + ", ".join(groups))

    if result.work_items:
        items = [
            f"{t.title} ({t.planned_min}min)" if t.planned_min > 0 else t.title for t in result.work_items
        ]
        parts.append(". Each node has: " + ", ".join(items))

    for special in result.special_nodes:
        due = f" due {special.due_date}" if special.due_date else ""
        parts.append(f"\nAlso: {special.title} ({special.kind}{due})")
    return "".join(parts)
