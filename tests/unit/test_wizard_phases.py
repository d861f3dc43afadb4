"""Unit tests for the structure wizard's phase state machine."""

from __future__ import annotations

from datetime import date

import pytest

from kairos.cli.draft.phases import (
    Collected,
    DeadlinePhase,
    DescriptionPhase,
    GroupCountPhase,
    GroupDaysPhase,
    GroupKindPhase,
    GroupLabelPhase,
    GroupNodeCountPhase,
    ItemMinutesPhase,
    ItemTitlePhase,
    ItemTypePhase,
    Phase,
    ReviewAction,
    ReviewPhase,
    SpecialDuePhase,
    SpecialKindPhase,
    SpecialTitlePhase,
    StartDatePhase,
    Transition,
)
from kairos.cli.draft.structure import Group, SpecialNode, WorkItemTemplate

TODAY = date(2026, 2, 8)


def walk(phase: Phase, collected: Collected, answers: list[str]) -> tuple[Transition, list[str]]:
    """Feed answers one by one; returns the last transition and every warning seen."""
    warnings: list[str] = []
    transition = Transition(phase, collected)
    for text in answers:
        transition = transition.phase.advance(transition.collected, text)
        warnings.extend(transition.warnings)
    return transition, warnings


@pytest.mark.unit
def test_description_is_required():
    transition = DescriptionPhase().advance(Collected(), "")

    assert isinstance(transition.phase, DescriptionPhase)
    assert transition.warnings == ("Project description is required.",)


@pytest.mark.unit
def test_description_moves_to_start_date():
    transition = DescriptionPhase().advance(Collected(), "Physics 101")

    assert isinstance(transition.phase, StartDatePhase)
    assert transition.collected.description == "Physics 101"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "expected", "warned"),
    [
        ("", "2026-02-08", False),
        ("2026-03-01", "2026-03-01", False),
        ("2026-3-1", "2026-03-01", False),
        ("next week", "2026-02-08", True),
    ],
)
def test_start_date_defaults_to_today(text, expected, warned):
    transition = StartDatePhase(today=TODAY).advance(Collected(description="x"), text)

    assert transition.collected.start_date == expected
    assert bool(transition.warnings) is warned
    assert isinstance(transition.phase, DeadlinePhase)


@pytest.mark.unit
def test_deadline_before_start_is_rejected_with_warning():
    collected = Collected(description="x", start_date="2026-02-08")

    transition = DeadlinePhase().advance(collected, "2026-02-01")

    assert transition.collected.deadline == ""
    assert transition.warnings == ("Deadline must be after the start date, no deadline set.",)
    assert isinstance(transition.phase, GroupCountPhase)


@pytest.mark.unit
def test_invalid_deadline_stays_unset():
    transition = DeadlinePhase().advance(Collected(start_date="2026-02-08"), "31/12/2026")

    assert transition.collected.deadline == ""
    assert transition.warnings == ("Invalid date, no deadline set.",)


@pytest.mark.unit
def test_deadline_resets_structure_collected_so_far():
    collected = Collected(start_date="2026-02-08", groups=(Group("Old", 2),), work_items=(WorkItemTemplate("x"),))

    transition = DeadlinePhase().advance(collected, "2026-06-01")

    assert transition.collected.deadline == "2026-06-01"
    assert transition.collected.groups == ()
    assert transition.collected.work_items == ()


@pytest.mark.unit
def test_dates_are_stored_zero_padded():
    collected = Collected(description="x", start_date="2026-02-08")

    deadline = DeadlinePhase().advance(collected, "2026-6-1")
    special, warnings = walk(SpecialDuePhase(SpecialNode("Exam", "assessment")), Collected(), ["2026-5-9"])

    assert deadline.collected.deadline == "2026-06-01"
    assert deadline.notes == ("Deadline: 2026-06-01",)
    assert warnings == []
    assert special.phase == ItemTitlePhase(SpecialNode("Exam", "assessment", "2026-05-09"))


@pytest.mark.unit
def test_invalid_group_count_uses_one():
    transition = GroupCountPhase().advance(Collected(), "0")

    assert transition.collected.group_total == 1
    assert transition.warnings == ("Invalid number, using 1.",)
    assert transition.phase == GroupLabelPhase(index=0, total=1)


@pytest.mark.unit
def test_group_label_prompt_numbers_groups_when_several():
    assert "Group 2" in GroupLabelPhase(index=1, total=3).prompt
    assert GroupLabelPhase(index=0, total=1).prompt.startswith("Node label")


@pytest.mark.unit
def test_group_questions_collect_one_group():
    """Label, count, kind and days produce one group, then the work item loop starts."""
    collected = Collected(group_total=1)

    transition, warnings = walk(GroupLabelPhase(0, 1), collected, ["Chapter", "5", "WEEK", "10"])

    assert warnings == []
    assert transition.collected.groups == (Group("Chapter", 5, "week", 10),)
    assert isinstance(transition.phase, ItemTitlePhase)
    assert transition.notes == ("Group: Chapter x5 (week)",)


@pytest.mark.unit
def test_group_defaults_and_bad_answers():
    transition, warnings = walk(GroupLabelPhase(0, 1), Collected(group_total=1), ["", "many", "blob", "soon"])

    assert transition.collected.groups == (Group("Module", 1, "module", 0),)
    assert warnings == ["Invalid number, using 1.", "Invalid kind, using module.", "Invalid number, spreading evenly."]


@pytest.mark.unit
def test_more_groups_loop_back_to_label():
    phase = GroupDaysPhase(0, Group("Unit", 2))

    transition = phase.advance(Collected(group_total=2), "")

    assert transition.phase == GroupLabelPhase(index=1, total=2)


@pytest.mark.unit
def test_node_count_blank_is_silent_default():
    transition = GroupNodeCountPhase(0, Group("Unit", 1)).advance(Collected(), "")

    assert transition.warnings == ()
    assert isinstance(transition.phase, GroupKindPhase)
    assert transition.phase.group.count == 1


@pytest.mark.unit
def test_work_item_loop_defaults():
    """Type defaults to task, minutes to 30, and an empty title ends the loop."""
    transition, warnings = walk(ItemTitlePhase(), Collected(), ["Reading", "", "", "Quiz", "essay", "x", ""])

    assert transition.collected.work_items == (
        WorkItemTemplate("Reading", "task", 30),
        WorkItemTemplate("Quiz", "task", 30),
    )
    assert warnings == ["Invalid type, using task.", "Invalid number, using 30."]
    assert isinstance(transition.phase, SpecialTitlePhase)


@pytest.mark.unit
def test_item_type_accepts_known_types_case_insensitively():
    transition = ItemTypePhase(WorkItemTemplate("Read")).advance(Collected(), "Reading")

    assert transition.phase == ItemMinutesPhase(WorkItemTemplate("Read", "reading"))


@pytest.mark.unit
def test_special_node_with_items():
    """A special node collects its own items and is stored once its item loop ends."""
    transition, warnings = walk(
        SpecialTitlePhase(),
        Collected(deadline="2026-05-01"),
        ["Final exam", "", "bad-date", "Mock test", "review", "90", ""],
    )

    assert warnings == ["Invalid date, using the deadline."]
    assert transition.collected.special_nodes == (
        SpecialNode("Final exam", "assessment", "", (WorkItemTemplate("Mock test", "review", 90),)),
    )
    assert transition.notes == ("+ Special: Final exam (assessment)",)
    assert isinstance(transition.phase, SpecialTitlePhase)


@pytest.mark.unit
def test_special_kind_and_due_date():
    transition, warnings = walk(SpecialKindPhase(SpecialNode("Launch")), Collected(), ["generic", "2026-04-01"])

    assert warnings == []
    assert transition.phase == ItemTitlePhase(SpecialNode("Launch", "generic", "2026-04-01"))


@pytest.mark.unit
def test_invalid_special_kind_uses_assessment():
    transition = SpecialKindPhase(SpecialNode("Gate")).advance(Collected(), "module")

    assert transition.warnings == ("Invalid kind, using assessment.",)
    assert transition.phase == SpecialDuePhase(SpecialNode("Gate", "assessment"))


@pytest.mark.unit
def test_empty_special_title_goes_to_review():
    transition = SpecialTitlePhase().advance(Collected(), "")

    assert isinstance(transition.phase, ReviewPhase)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "action"),
    [
        ("a", ReviewAction.ACCEPT),
        ("Accept", ReviewAction.ACCEPT),
        ("c", ReviewAction.CANCEL),
        ("cancel", ReviewAction.CANCEL),
    ],
)
def test_review_accept_and_cancel(text, action):
    assert ReviewPhase().advance(Collected(), text).action == action


@pytest.mark.unit
def test_review_refine_requires_llm():
    without = ReviewPhase(refine_available=False).advance(Collected(), "r")
    with_llm = ReviewPhase(refine_available=True).advance(Collected(), "refine")

    assert without.action is None
    assert without.warnings == ("LLM features are disabled. Accept the draft or cancel.",)
    assert with_llm.action == ReviewAction.REFINE
    assert "[r]efine" in ReviewPhase(refine_available=True).prompt
    assert "[r]efine" not in ReviewPhase().prompt


@pytest.mark.unit
def test_review_unknown_choice_stays():
    phase = ReviewPhase()

    transition = phase.advance(Collected(), "maybe")

    assert transition.phase is phase
    assert transition.warnings == ("Invalid option.",)


@pytest.mark.unit
def test_advance_never_mutates_the_incoming_answers():
    collected = Collected(description="x")

    DeadlinePhase().advance(collected, "2026-01-01")
    ItemMinutesPhase(WorkItemTemplate("a")).advance(collected, "20")

    assert collected == Collected(description="x")
