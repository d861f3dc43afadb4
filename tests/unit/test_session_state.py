"""Unit tests for the per-session context."""

from __future__ import annotations

from datetime import date

import pytest

from kairos.cli.session import SessionState
from kairos.core.models import Project, ProjectStatus

START = date(2026, 2, 1)


@pytest.mark.unit
def test_prompt_shows_the_active_project():
    state = SessionState()
    assert state.prompt() == "kairos ❯ "

    state.set_active_project("p-1", "PHYS01", "Physics")

    assert state.prompt() == "kairos (PHYS01) ❯ "


@pytest.mark.unit
def test_switching_project_clears_the_item():
    state = SessionState()
    state.set_active_project("p-1", "PHYS01", "Physics")
    state.set_active_item("i-1", "Read", 3)

    state.set_active_project("p-1", "PHYS01", "Physics 101")
    assert state.has_item

    state.set_active_project("p-2", "BIO01", "Biology")
    assert not state.has_item


@pytest.mark.unit
def test_describe():
    state = SessionState()
    assert state.describe() == "Project: (none)\nItem:    (none)"

    state.set_active_project("p-1", "PHYS01", "Physics")
    state.set_active_item("i-1", "Read", 3)
    state.last_duration = 25

    assert state.describe() == "Project: Physics (PHYS01)\nItem:    #3 Read\nLast duration: 25m"


@pytest.mark.unit
def test_clear_drops_project_item_and_recommendation():
    state = SessionState(last_duration=30)
    state.set_active_project("p-1", "PHYS01", "Physics")
    state.set_active_item("i-1", "Read")
    state.last_recommended_item_id = "i-2"

    state.clear()

    assert not state.has_project
    assert not state.has_item
    assert state.last_recommended_item_id == ""
    assert state.last_duration == 30


@pytest.mark.unit
def test_project_cache_honours_ttl():
    state = SessionState(cache_ttl_s=5.0)
    loads = []

    def loader():
        loads.append(1)
        return []

    state.cached_projects(loader, now=100.0)
    state.cached_projects(loader, now=104.9)
    assert len(loads) == 1

    state.cached_projects(loader, now=105.0)
    assert len(loads) == 2

    state.invalidate_projects()
    state.cached_projects(loader, now=105.1)
    assert len(loads) == 3


@pytest.mark.unit
def test_content_height_never_drops_below_one():
    assert SessionState(height=3).content_height == 1
    assert SessionState(height=30).content_height == 25


@pytest.mark.unit
def test_project_updated_refreshes_or_clears_the_active_project():
    state = SessionState()
    state.set_active_project("p-1", "PHYS01", "Physics")
    loads = []
    state.cached_projects(lambda: loads.append(1) or [], now=0.0)

    state.project_updated(Project(id="p-1", short_id="PHYS02", name="Physics II", domain="d", start_date=START))
    state.cached_projects(lambda: loads.append(1) or [], now=0.1)

    assert state.prompt() == "kairos (PHYS02) ❯ "
    assert len(loads) == 2

    state.project_updated(Project(id="p-9", short_id="BIO01", name="Biology", domain="d", start_date=START))
    assert state.active_short_id == "PHYS02"

    archived = Project(
        id="p-1", short_id="PHYS02", name="Physics II", domain="d", start_date=START, status=ProjectStatus.ARCHIVED
    )
    state.project_updated(archived)

    assert not state.has_project


@pytest.mark.unit
def test_merge_applies_only_what_the_snapshot_changed():
    live = SessionState()
    live.set_active_project("p-1", "PHYS01", "Physics")
    before = live.snapshot()
    worker = live.snapshot()

    worker.set_active_item("i-1", "Read", 3)
    worker.invalidate_projects()
    live.last_duration = 45

    live.merge(before, worker)

    assert live.active_item_title == "Read"
    assert live.active_item_seq == 3
    assert live.last_duration == 45
    assert live.active_short_id == "PHYS01"


@pytest.mark.unit
def test_snapshot_does_not_share_the_project_cache():
    live = SessionState()
    live.cached_projects(lambda: [Project(id="p-1", short_id="PHYS01", name="Physics", start_date=START)], now=0.0)

    copy = live.snapshot()
    copy.set_active_project("p-2", "BIO01", "Biology")
    copy._project_cache.clear()

    assert not live.has_project
    assert len(live.cached_projects(lambda: [], now=0.1)) == 1
