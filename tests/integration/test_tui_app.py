"""Integration tests driving the Textual app through its pilot."""

from __future__ import annotations

import asyncio
import threading

import pytest

from kairos.cli.shell_history import ShellHistory
from kairos.cli.tui.app import KairosApp
from kairos.cli.tui.types import ViewID
from kairos.cli.tui.views.draft import DraftView
from kairos.intelligence.contracts import AskResolution, ExecutionState, IntentName, ParsedIntent
from tests.fakes import FakeIntent, make_dispatcher, make_services, seed_project

WIZARD_ANSWERS = ["Thesis", "", "", "", "Chapter", "1", "", "10", "Write", "reading", "90", "", ""]


def _app(**overrides) -> KairosApp:
    services = make_services(**overrides)
    seed_project(services)
    dispatcher = make_dispatcher(services, views_enabled=True)
    return KairosApp(services, dispatcher=dispatcher, history=ShellHistory(None))


async def _submit(app: KairosApp, pilot, line: str) -> None:
    app.command_bar.focus()
    app.command_bar.value = line
    await pilot.press("enter")
    await pilot.pause()


async def _draft_at_review(app: KairosApp, pilot) -> DraftView:
    await _submit(app, pilot, "draft")
    await app.workers.wait_for_complete()
    await pilot.pause()
    view = app.stack.active
    assert isinstance(view, DraftView)
    for answer in WIZARD_ANSWERS:
        view.session.submit(answer)
    assert view.session.prompt == "[a]ccept  [c]ancel:"
    return view


@pytest.mark.integration
@pytest.mark.asyncio
async def test_app_starts_on_the_dashboard():
    app = _app()
    async with app.run_test() as pilot:
        await pilot.pause()

        assert app.stack.active.view_id == ViewID.DASHBOARD
        assert app.stack.at_root
        assert app.command_bar.has_focus


@pytest.mark.integration
@pytest.mark.asyncio
async def test_command_pushes_a_view_and_escape_pops_it():
    app = _app()
    async with app.run_test() as pilot:
        await _submit(app, pilot, "projects")

        assert app.stack.active.view_id == ViewID.PROJECT_LIST
        assert app.stack.breadcrumb() == "Dashboard › Projects"
        assert app.history.entries == ["projects"]

        await pilot.press("escape")
        await pilot.pause()

        assert app.stack.active.view_id == ViewID.DASHBOARD


@pytest.mark.integration
@pytest.mark.asyncio
async def test_question_mark_opens_recommendations():
    app = _app()
    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("escape")
        await pilot.press("question_mark")
        await pilot.pause()
        await app.workers.wait_for_complete()

        assert app.stack.active.view_id == ViewID.RECOMMENDATION
        assert app.dispatcher.services.what_now.calls == [(60, None)]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_destructive_command_opens_a_confirmation_form():
    app = _app()
    async with app.run_test() as pilot:
        await _submit(app, pilot, "project remove PHYS01")

        assert app.stack.active.view_id == ViewID.FORM
        assert "phys01-0000-uuid" in app.dispatcher.services.projects.rows

        await pilot.press("y", "enter")
        await pilot.pause()

        assert app.stack.at_root
        assert app.dispatcher.services.projects.rows == {}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_escape_on_a_confirmation_declines_it():
    app = _app()
    async with app.run_test() as pilot:
        await _submit(app, pilot, "project archive PHYS01")

        await pilot.press("escape")
        await pilot.pause()

        assert app.stack.at_root
        assert app.dispatcher.services.projects.writes == [("create", "phys01-0000-uuid")]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_escape_during_a_running_accept_imports_nothing():
    app = _app()
    async with app.run_test() as pilot:
        view = await _draft_at_review(app, pilot)
        release = threading.Event()
        submit = view.session.submit

        def slow_submit(text):
            release.wait(2)
            return submit(text)

        view.session.submit = slow_submit
        view.turn("a")
        await pilot.press("escape")
        await pilot.pause()

        assert view.closing
        assert app.stack.active is view

        release.set()
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert app.stack.at_root
        assert app.dispatcher.services.importer.schemas == []
        assert not app.dispatcher.state.has_project


@pytest.mark.integration
@pytest.mark.asyncio
async def test_import_that_finishes_before_the_cancel_is_reported_and_activated():
    app = _app()
    async with app.run_test() as pilot:
        view = await _draft_at_review(app, pilot)
        importer = app.dispatcher.services.importer
        started, release = threading.Event(), threading.Event()
        import_schema = importer.import_schema

        def slow_import(schema):
            started.set()
            release.wait(2)
            return import_schema(schema)

        importer.import_schema = slow_import
        view.turn("a")
        assert await asyncio.to_thread(started.wait, 2)
        await pilot.press("escape")
        release.set()
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert len(importer.schemas) == 1
        assert app.dispatcher.state.active_project_id == "proj-1"
        assert app.stack.active is not view


@pytest.mark.integration
@pytest.mark.asyncio
async def test_worker_dispatch_hands_context_changes_back_to_the_live_state():
    archive = AskResolution(
        parsed_intent=ParsedIntent(
            IntentName.PROJECT_UPDATE, arguments={"project_id": "PHYS01", "status": "archived"}, confidence=0.95
        ),
        execution_state=ExecutionState.NEEDS_CONFIRMATION,
    )
    app = _app(intent=FakeIntent(archive))
    async with app.run_test() as pilot:
        await _submit(app, pilot, "use PHYS01")
        assert app.dispatcher.state.has_project

        await _submit(app, pilot, "ask -y archive physics")
        app.dispatcher.state.last_duration = 25
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert not app.dispatcher.state.has_project
        assert app.dispatcher.state.last_duration == 25
