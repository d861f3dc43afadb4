"""Unit tests for project, node and work-item resolution."""

from __future__ import annotations

import pytest

from kairos.cli.resolve import match_project, resolve_node, resolve_work_item
from kairos.core.errors import AmbiguousMatchError, NotFoundError, UserInputError
from tests.fakes import make_services, seed_item, seed_node, seed_project


@pytest.fixture
def services():
    services = make_services()
    seed_project(services, project_id="a1b2c3d4-phys")
    seed_project(services, short_id="BIO01", name="Biology", project_id="a1b2ffff-bio")
    seed_project(services, short_id="A1B2", name="Tricky", project_id="zzzz-tricky")
    return services


def _projects(services):
    return services.projects.list_projects(include_archived=True)


@pytest.mark.unit
def test_short_id_wins_case_insensitively(services):
    assert match_project(_projects(services), "phys01").id == "a1b2c3d4-phys"


@pytest.mark.unit
def test_short_id_beats_an_id_prefix(services):
    assert match_project(_projects(services), "a1b2").id == "zzzz-tricky"


@pytest.mark.unit
def test_exact_id_and_unique_prefix(services):
    projects = _projects(services)

    assert match_project(projects, "a1b2ffff-bio").short_id == "BIO01"
    assert match_project(projects, "a1b2c").short_id == "PHYS01"


@pytest.mark.unit
def test_ambiguous_prefix_raises(services):
    with pytest.raises(AmbiguousMatchError) as info:
        match_project(_projects(services), "a1b")

    assert info.value.count == 2


@pytest.mark.unit
@pytest.mark.parametrize(("query", "error"), [("", UserInputError), ("nope", NotFoundError)])
def test_unmatched_queries(services, query, error):
    with pytest.raises(error):
        match_project(_projects(services), query)


@pytest.mark.unit
def test_numeric_node_needs_a_project(services):
    with pytest.raises(UserInputError, match="requires project context"):
        resolve_node(services, "2", "")


@pytest.mark.unit
def test_node_by_seq_and_by_id(services):
    project = services.projects.get_by_id("a1b2c3d4-phys")
    node = seed_node(services, project, seq=2, title="Chapter 2")

    assert resolve_node(services, "2", project.id) is node
    assert resolve_node(services, node.id, "") is node
    with pytest.raises(NotFoundError):
        resolve_node(services, "5", project.id)


@pytest.mark.unit
def test_work_item_by_seq(services):
    project = services.projects.get_by_id("a1b2c3d4-phys")
    node = seed_node(services, project)
    seed_item(services, node, 1, "Read")
    item = seed_item(services, node, 2, "Problems")

    assert resolve_work_item(services, "2", project.id) is item


@pytest.mark.unit
def test_collapsed_node_answers_to_its_seq(services):
    """A node with a single item is shown collapsed, so its seq finds the item."""
    project = services.projects.get_by_id("a1b2c3d4-phys")
    seed_node(services, project, seq=1)
    lone = seed_node(services, project, seq=4, title="Exam")
    only = seed_item(services, lone, 7, "Sit the exam")

    assert resolve_work_item(services, "4", project.id) is only


@pytest.mark.unit
def test_work_item_zero_is_treated_as_an_id(services):
    with pytest.raises(NotFoundError):
        resolve_work_item(services, "0", "a1b2c3d4-phys")
