"""Unit tests for guided flows and their form steps."""

from __future__ import annotations

import pytest

from kairos.cli.flows import (
    Choice,
    ConfirmFlow,
    FormStep,
    ItemSelectFlow,
    NodeAddFlow,
    ProjectSelectFlow,
    SessionLogFlow,
    StepKind,
    confirm_step,
)
from kairos.cli.outcome import PendingAction, PendingKind
from kairos.core.models import WorkItemStatus
from tests.fakes import make_services, seed_item, seed_node, seed_project

CHOICES = (Choice("#1 Chapter 1", "node-1"), Choice("#2 Chapter 2", "node-2"))


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [("2", "node-2"), (" 1 ", "node-1"), ("3", "3"), ("node-2", "node-2"), ("", "node-1")],
)
def test_select_step_maps_numbers_to_values(raw, expected):
    step = FormStep("node", StepKind.SELECT, "Select node", CHOICES, default="node-1")

    assert step.normalize(raw) == expected


@pytest.mark.unit
def test_select_step_rejects_values_outside_the_choices():
    step = FormStep("node", StepKind.SELECT, "Select node", CHOICES)

    assert step.check("node-9") == "choose 1-2"
    assert step.check("node-1") is None


@pytest.mark.unit
@pytest.mark.parametrize(("raw", "expected"), [("y", "yes"), ("YES", "yes"), ("n", "no"), ("", "no"), ("maybe", "maybe")])
def test_confirm_step_normalizes_answers(raw, expected):
    assert confirm_step("Sure?").normalize(raw) == expected


@pytest.mark.unit
def test_confirm_step_default_and_check():
    step = confirm_step("Sure?", default=True)

    assert step.normalize("") == "yes"
    assert step.check("maybe") == "answer y or n"


@pytest.mark.unit
def test_input_step_runs_its_validator():
    step = FormStep("title", StepKind.INPUT, "Title", validator=lambda v: None if v else "a value is required")

    assert step.check("") == "a value is required"
    assert step.check("Notes") is None


@pytest.mark.unit
def test_confirm_flow_defaults_to_the_pending_default():
    pending = PendingAction(PendingKind.COMMAND, "project remove PHYS01?", tokens=("project", "remove", "PHYS01", "--yes"))
    flow = ConfirmFlow(pending)

    assert flow.current().prompt == "project remove PHYS01?"
    assert flow.submit("") is None

    assert flow.complete
    assert not flow.confirmed
    assert flow.command() == ["project", "remove", "PHYS01", "--yes"]


@pytest.mark.unit
def test_confirm_flow_keeps_the_step_on_bad_input():
    flow = ConfirmFlow(PendingAction(PendingKind.COMMAND, "Sure?", default=True))

    assert flow.submit("perhaps") == "answer y or n"
    assert not flow.complete

    flow.submit("y")
    assert flow.confirmed


@pytest.mark.unit
def test_submit_after_completion_is_a_programming_error():
    flow = ConfirmFlow(PendingAction(PendingKind.COMMAND, "Sure?"))
    flow.submit("y")

    with pytest.raises(RuntimeError):
        flow.submit("y")


@pytest.mark.unit
def test_project_select_appends_the_chosen_project():
    services = make_services()
    seed_project(services)
    seed_project(services, short_id="BIO01", name="Biology")
    flow = ProjectSelectFlow(services, ["inspect"])

    step = flow.current()
    assert [c.value for c in step.choices] == ["phys01-0000-uuid", "bio01-0000-uuid"]

    flow.submit("2")

    assert flow.complete
    assert flow.command() == ["inspect", "bio01-0000-uuid"]


@pytest.mark.unit
def test_archived_projects_are_not_offered():
    services = make_services()
    seed_project(services)
    seed_project(services, short_id="OLD01", name="Old")
    services.projects.archive("old01-0000-uuid")

    step = ProjectSelectFlow(services, ["inspect"]).current()

    assert len(step.choices) == 1


@pytest.mark.unit
def test_flow_without_projects_aborts():
    flow = NodeAddFlow(make_services())

    assert flow.start() == "No projects yet. Create one with 'project add' or 'draft'."
    assert flow.aborted
    assert not flow.complete
    assert flow.current() is None


@pytest.mark.unit
def test_node_add_flow_builds_the_command():
    services = make_services()
    project = seed_project(services)
    flow = NodeAddFlow(services, project.id)

    assert flow.current().key == "title"
    assert flow.submit("") == "a value is required"
    flow.submit("Midterm")
    flow.submit("")

    assert flow.command() == ["node", "add", "--project", project.id, "--title", "Midterm", "--kind", "module"]


@pytest.mark.unit
def test_session_log_flow_defaults_minutes_and_skips_done_items():
    services = make_services()
    project = seed_project(services)
    node = seed_node(services, project)
    seed_item(services, node, 1, "Read")
    seed_item(services, node, 2, "Done already").status = WorkItemStatus.DONE
    flow = SessionLogFlow(services, project.id, default_minutes=25)

    assert [c.label for c in flow.current().choices] == ["#1 Read"]
    flow.submit("1")
    assert flow.current().default == "25"
    assert flow.submit("0") == "enter a positive number"
    flow.submit("")

    assert flow.command() == ["session", "log", "--work-item", f"{node.id}-item-1", "--minutes", "25"]


@pytest.mark.unit
def test_item_select_flow_keeps_extra_arguments():
    services = make_services()
    project = seed_project(services)
    node = seed_node(services, project)
    seed_item(services, node, 1, "Read")
    flow = ItemSelectFlow(services, "log", project.id, ["20"])

    flow.submit("1")

    assert flow.command() == ["log", f"{node.id}-item-1", "20"]


@pytest.mark.unit
def test_item_select_flow_without_open_items_aborts():
    services = make_services()
    project = seed_project(services)
    seed_node(services, project)

    flow = ItemSelectFlow(services, "start", project.id)

    assert flow.start() == "No open work items in this project."
