"""Unit tests for compiling structure-wizard answers into an ImportSchema."""

from __future__ import annotations

import pytest

from kairos.cli.draft.structure import (
    Group,
    SpecialNode,
    WizardResult,
    WorkItemTemplate,
    build_llm_description,
    build_schema_from_wizard,
    generate_short_id,
)
from kairos.importer.validate import validate_import_schema

PHYSICS = WizardResult(
    description="Physics 101",
    start_date="2026-02-08",
    groups=(Group(label="Chapter", count=5, kind="module", days_per=10),),
    work_items=(
        WorkItemTemplate(title="Reading", type="reading", planned_min=60),
        WorkItemTemplate(title="Problems", type="practice", planned_min=45),
    ),
)


@pytest.mark.unit
def test_physics_chapters_get_cursor_due_dates_and_budgets():
    """Five 10-day chapters from Feb 8 are due every ten days, each budgeting both templates."""
    schema = build_schema_from_wizard(PHYSICS)

    assert [n.title for n in schema.nodes] == [f"Chapter {i}" for i in range(1, 6)]
    assert [n.due_date for n in schema.nodes] == [
        "2026-02-18",
        "2026-02-28",
        "2026-03-10",
        "2026-03-20",
        "2026-03-30",
    ]
    assert all(n.planned_min_budget == 105 for n in schema.nodes)
    assert [n.order for n in schema.nodes] == [1, 2, 3, 4, 5]
    assert len(schema.work_items) == 10


@pytest.mark.unit
def test_work_items_are_stamped_under_every_node_in_order():
    """Each node receives one copy of every template, in template order."""
    schema = build_schema_from_wizard(PHYSICS)

    first_node = schema.nodes[0].ref
    stamped = [i for i in schema.work_items if i.node_ref == first_node]
    assert [(i.title, i.type, i.planned_min) for i in stamped] == [
        ("Reading", "reading", 60),
        ("Problems", "practice", 45),
    ]


@pytest.mark.unit
def test_project_metadata_and_defaults():
    """Project gets a derived short id, the education domain and the default session policy."""
    schema = build_schema_from_wizard(PHYSICS)

    assert schema.project.short_id == "PHYS01"
    assert schema.project.name == "Physics 101"
    assert schema.project.domain == "education"
    assert schema.project.start_date == "2026-02-08"
    assert schema.project.target_date is None
    assert schema.defaults is not None
    assert schema.defaults.duration_mode == "estimate"
    policy = schema.defaults.session_policy
    assert (policy.min_session_min, policy.max_session_min, policy.default_session_min) == (15, 60, 30)
    assert policy.splittable is True


@pytest.mark.unit
def test_compiled_schema_passes_validation():
    """Wizard output is always importable as-is."""
    result = WizardResult(
        description="Spanish B1",
        start_date="2026-01-01",
        deadline="2026-06-30",
        groups=(Group("Unit", 3), Group("Review", 1, kind="assessment", days_per=5)),
        work_items=(WorkItemTemplate("Vocabulary", "practice", 20),),
        special_nodes=(SpecialNode("Final exam", work_items=(WorkItemTemplate("Mock test", "review", 90),)),),
    )

    assert validate_import_schema(build_schema_from_wizard(result)) == []


@pytest.mark.unit
def test_due_dates_spread_evenly_to_the_deadline():
    """Without days per node, due dates are spread linearly and the last node lands on the deadline."""
    result = WizardResult(
        description="Thesis",
        start_date="2026-01-01",
        deadline="2026-01-31",
        groups=(Group("Stage", 3, kind="stage"),),
    )

    schema = build_schema_from_wizard(result)

    assert [n.due_date for n in schema.nodes] == ["2026-01-11", "2026-01-21", "2026-01-31"]
    assert schema.project.target_date == "2026-01-31"


@pytest.mark.unit
def test_no_deadline_and_no_days_leaves_nodes_undated():
    result = WizardResult(description="Reading list", start_date="2026-01-01", groups=(Group("Book", 2),))

    schema = build_schema_from_wizard(result)

    assert [n.due_date for n in schema.nodes] == [None, None]
    assert all(n.planned_min_budget is None for n in schema.nodes)


@pytest.mark.unit
def test_date_cursor_continues_across_groups():
    """A second timed group starts where the first one ended."""
    result = WizardResult(
        description="Course",
        start_date="2026-03-01",
        groups=(Group("Week", 2, kind="week", days_per=7), Group("Sprint", 2, days_per=3)),
    )

    schema = build_schema_from_wizard(result)

    assert [(n.title, n.due_date) for n in schema.nodes] == [
        ("Week 1", "2026-03-08"),
        ("Week 2", "2026-03-15"),
        ("Sprint 1", "2026-03-18"),
        ("Sprint 2", "2026-03-21"),
    ]


@pytest.mark.unit
def test_special_nodes_follow_regular_nodes_and_continue_counters():
    """Special nodes keep order and ref numbering going; an undated one is due on the deadline."""
    result = WizardResult(
        description="Physics 101",
        start_date="2026-02-08",
        deadline="2026-04-30",
        groups=(Group("Chapter", 2, days_per=10),),
        work_items=(WorkItemTemplate("Reading", "reading", 60),),
        special_nodes=(
            SpecialNode("Midterm", due_date="2026-03-15", work_items=(WorkItemTemplate("Revise", "review", 120),)),
            SpecialNode("Final", kind="generic"),
        ),
    )

    schema = build_schema_from_wizard(result)

    midterm, final = schema.nodes[2], schema.nodes[3]
    assert (midterm.title, midterm.kind, midterm.order, midterm.due_date) == ("Midterm", "assessment", 3, "2026-03-15")
    assert midterm.planned_min_budget == 120
    assert (final.title, final.kind, final.order, final.due_date) == ("Final", "generic", 4, "2026-04-30")
    assert final.planned_min_budget is None
    assert [i.title for i in schema.work_items if i.node_ref == midterm.ref] == ["Revise"]


@pytest.mark.unit
def test_refs_and_orders_are_unique():
    result = WizardResult(
        description="Big plan",
        start_date="2026-01-01",
        groups=(Group("A", 3), Group("B", 4)),
        work_items=(WorkItemTemplate("x", planned_min=10), WorkItemTemplate("y", planned_min=10)),
        special_nodes=(SpecialNode("Exam", work_items=(WorkItemTemplate("z"),)),),
    )

    schema = build_schema_from_wizard(result)

    node_refs = [n.ref for n in schema.nodes]
    item_refs = [i.ref for i in schema.work_items]
    assert len(set(node_refs)) == len(node_refs) == 8
    assert len(set(item_refs)) == len(item_refs) == 15
    assert sorted(n.order for n in schema.nodes) == list(range(1, 9))


@pytest.mark.unit
def test_zero_minute_templates_have_no_planned_minutes():
    result = WizardResult(
        description="Loose",
        start_date="2026-01-01",
        groups=(Group("Part", 1),),
        work_items=(WorkItemTemplate("Skim"),),
    )

    schema = build_schema_from_wizard(result)

    assert schema.work_items[0].planned_min is None
    assert schema.nodes[0].planned_min_budget is None


@pytest.mark.unit
@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("Physics 101", "PHYS01"),
        ("x-ray imaging", "XRAY01"),
        ("AB", "ABX01"),
        ("", "XXX01"),
        ("42 ok", "OKX01"),
    ],
)
def test_generate_short_id(description, expected):
    assert generate_short_id(description) == expected


@pytest.mark.unit
def test_llm_description_summarizes_answers():
    result = WizardResult(
        description="Physics 101",
        start_date="2026-02-08",
        deadline="2026-05-01",
        groups=PHYSICS.groups,
        work_items=PHYSICS.work_items,
        special_nodes=(SpecialNode("Final exam", due_date="2026-04-30"),),
    )

    text = build_llm_description(result)

    assert text.startswith("Physics 101\nStart date: 2026-02-08\nDeadline: 2026-05-01")
    assert "Structure: 5 Chapters (10 days each)" in text
    assert "Each node has: Reading (60min), Problems (45min)" in text
    assert "Also: Final exam (assessment due 2026-04-30)" in text
