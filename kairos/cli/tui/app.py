"""Textual terminal UI over the command dispatcher.

Layout, top to bottom: breadcrumb of the view stack, the active view, the
output panel, the command bar and the active view's key hints. Only the top
of the stack is displayed; views below it stay mounted but hidden.
"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import Optional

from rich.text import Text
from textual import events
from textual.actions import SkipAction
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import RichLog, Static

from kairos.cli.args import tokenize
from kairos.cli.dispatch import CommandDispatcher
from kairos.cli.flows import ConfirmFlow
from kairos.cli.outcome import DispatchResult, ViewRequest
from kairos.cli.session import SessionState
from kairos.cli.shell_history import ShellHistory
from kairos.cli.tui.messages import CommandRequested, CommandSubmitted, OpenView, ViewFinished
from kairos.cli.tui.navigator import RequestTracker, ViewStack, route_key
from kairos.cli.tui.types import KeyRoute, OutputLevel, ViewID
from kairos.cli.tui.views.action_menu import ActionMenuView
from kairos.cli.tui.views.base import DIM, LEVEL_STYLES, StackView
from kairos.cli.tui.views.dashboard import DashboardView
from kairos.cli.tui.views.draft import DraftView
from kairos.cli.tui.views.form import FormView
from kairos.cli.tui.views.help_chat import HelpChatView
from kairos.cli.tui.views.project_list import ProjectListView
from kairos.cli.tui.views.recommendation import RecommendationView
from kairos.cli.tui.views.task_list import TaskListView
from kairos.cli.tui.widgets.command_bar import CommandBar
from kairos.config import KairosConfig
from kairos.constants import APP_NAME
from kairos.core.errors import KairosError
from kairos.core.ports import Services

logger = logging.getLogger(__name__)

# Chrome refresh interval (breadcrumb titles change as views load)
CHROME_INTERVAL_S = 0.5

# Verbs whose collaborator calls may be slow; they run off the UI thread.
WORKER_VERBS = frozenset({"ask", "explain", "review", "replan"})

_GLOBAL_HINTS = "[:] Command  [?] What now  [Esc] Back  [q] Quit"
_CAPTURING_HINTS = "[Esc] Cancel"


def runs_in_worker(line: str) -> bool:
    try:
        tokens = tokenize(line)
    except KairosError:
        return False
    if not tokens:
        return False
    if tokens[0] in WORKER_VERBS:
        return True
    return tokens[0] == "help" and len(tokens) > 1 and tokens[1] != "chat"


class KairosApp(App[None]):
    """View stack plus command bar, driven by one ``CommandDispatcher``."""

    TITLE = APP_NAME

    CSS = """
    #breadcrumb {
        height: 1;
        background: $surface;
        padding: 0 1;
    }
    #view-host {
        height: 1fr;
        padding: 0 1;
    }
    #output {
        height: 8;
        border-top: solid $panel;
    }
    #short-help {
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("colon", "route_key(':')", "Command", priority=True, key_display=":"),
        Binding("question_mark", "route_key('?')", "What now", priority=True, key_display="?"),
        Binding("q", "route_key('q')", "Quit", priority=True),
        Binding("escape", "route_key('escape')", "Back", priority=True, show=False),
    ]

    def __init__(
        self,
        services: Services,
        config: Optional[KairosConfig] = None,
        dispatcher: Optional[CommandDispatcher] = None,
        history: Optional[ShellHistory] = None,
    ) -> None:
        super().__init__()
        self.dispatcher = dispatcher or CommandDispatcher(services, config=config, views_enabled=True)
        shell_cfg = self.dispatcher.ctx.config.shell
        if history is None:
            history = ShellHistory(Path(shell_cfg.history_file).expanduser(), shell_cfg.history_limit)
            history.load()
        self.history = history
        self.requests = RequestTracker()
        self.stack: ViewStack[StackView] = ViewStack(DashboardView(self.dispatcher))

    def compose(self) -> ComposeResult:
        yield Static(id="breadcrumb")
        yield Container(id="view-host")
        yield RichLog(id="output", wrap=True, markup=False, max_lines=500)
        yield CommandBar(self.history, self.dispatcher.verbs(), id="command-bar")
        yield Static(id="short-help")

    async def on_mount(self) -> None:
        root = self.stack.root
        await self.query_one("#view-host", Container).mount(root)
        root.reload()
        self.command_bar.focus()
        self.sync_chrome()
        self.set_interval(CHROME_INTERVAL_S, self.sync_chrome)

    @property
    def command_bar(self) -> CommandBar:
        return self.query_one("#command-bar", CommandBar)

    # --- chrome ---

    def sync_chrome(self) -> None:
        crumb = Text(self.stack.breadcrumb())
        if self.requests.loading:
            crumb.append("  ⋯ working", style=DIM)
        self.query_one("#breadcrumb", Static).update(crumb)
        active = self.stack.active
        hints = _CAPTURING_HINTS if active.captures_input else _GLOBAL_HINTS
        short = f"{active.short_help}  {hints}" if active.short_help else hints
        self.query_one("#short-help", Static).update(Text(short, style=DIM))

    def write_output(self, text: str, level: OutputLevel = OutputLevel.INFO) -> None:
        self.query_one("#output", RichLog).write(Text(text.rstrip("\n"), style=LEVEL_STYLES[level]))

    # --- stack ---

    async def push_view(self, view: StackView) -> None:
        self.stack.active.display = False
        self.stack.push(view)
        await self.query_one("#view-host", Container).mount(view)
        self._activate(view)

    async def replace_view(self, view: StackView) -> None:
        previous = self.stack.replace(view)
        await previous.remove()
        await self.query_one("#view-host", Container).mount(view)
        self._activate(view)

    async def pop_view(self) -> None:
        popped = self.stack.pop()
        if popped is None:
            return
        await popped.remove()
        active = self.stack.active
        active.display = True
        active.focus_input()
        self.sync_chrome()

    def _activate(self, view: StackView) -> None:
        logger.debug("view %s active (depth %d)", view.view_id.value, len(self.stack))
        view.reload()
        view.focus_input()
        self.sync_chrome()

    def make_view(self, request: ViewRequest) -> Optional[StackView]:
        d = self.dispatcher
        if request.view == ViewID.PROJECT_LIST:
            return ProjectListView(d)
        if request.view == ViewID.TASK_LIST:
            return TaskListView(d, project_id=request.project_id)
        if request.view == ViewID.ACTION_MENU:
            return ActionMenuView(d, project_id=request.project_id, item_id=request.text)
        if request.view == ViewID.RECOMMENDATION:
            return RecommendationView(d, minutes=request.minutes or d.ctx.config.shell.default_minutes)
        if request.view == ViewID.DRAFT:
            return DraftView(d, description=request.text)
        if request.view == ViewID.HELP_CHAT:
            return HelpChatView(d, question=request.text)
        return None

    def _view_for(self, result: DispatchResult) -> Optional[StackView]:
        if result.pending is not None:
            return FormView(self.dispatcher, ConfirmFlow(result.pending))
        if result.flow is not None:
            return FormView(self.dispatcher, result.flow)
        if result.view is not None:
            return self.make_view(result.view)
        return None

    # --- dispatch ---

    async def run_line(self, line: str) -> None:
        self.write_output(f"❯ {line}", OutputLevel.INFO)
        if runs_in_worker(line):
            token = self.requests.issue()
            worker = self.dispatcher.detached()
            before = worker.state.snapshot()
            self.sync_chrome()
            self.run_worker(
                partial(self._dispatch_in_thread, token, worker, before, line),
                thread=True,
                group="dispatch",
                exit_on_error=False,
            )
            return
        await self.apply(self.dispatcher.dispatch(line))

    def _dispatch_in_thread(self, token: int, dispatcher: CommandDispatcher, before: SessionState, line: str) -> None:
        # Only the snapshot is touched here; the UI thread owns the live state.
        result = dispatcher.dispatch(line)
        self.call_from_thread(self._dispatched, token, result, before, dispatcher.state)

    async def _dispatched(self, token: int, result: DispatchResult, before: SessionState, after: SessionState) -> None:
        # Context changes describe writes that already happened, stale or not.
        self.dispatcher.state.merge(before, after)
        if not self.requests.complete(token):
            logger.debug("dropping stale dispatch result (token %d)", token)
            self.sync_chrome()
            return
        await self.apply(result)
        self.sync_chrome()

    async def apply(self, result: DispatchResult, *, replacing: bool = False) -> None:
        """Show a dispatch result and open whatever view it asks for.

        With ``replacing`` the active view is finished: a follow-up view takes
        its place, otherwise it is popped.
        """
        if result.clear:
            self.query_one("#output", RichLog).clear()
        if result.output:
            self.write_output(result.output, result.level)
        if result.refresh:
            self.broadcast_refresh()
        if result.quit:
            self.exit()
            return
        view = self._view_for(result)
        if view is not None:
            if replacing:
                await self.replace_view(view)
            else:
                await self.push_view(view)
        elif replacing:
            await self.pop_view()
            self.command_bar.focus()

    def broadcast_refresh(self) -> None:
        for view in self.stack:
            view.reload()

    # --- events ---

    async def on_command_submitted(self, message: CommandSubmitted) -> None:
        await self.run_line(message.line)

    async def on_command_requested(self, message: CommandRequested) -> None:
        if message.close:
            await self.pop_view()
        await self.run_line(message.line)

    async def on_open_view(self, message: OpenView) -> None:
        view = self.make_view(message.request)
        if view is not None:
            await self.push_view(view)

    async def on_view_finished(self, message: ViewFinished) -> None:
        if message.message:
            self.write_output(message.message, OutputLevel.WARNING if message.cancelled else OutputLevel.INFO)
        if message.result is not None:
            await self.apply(message.result, replacing=True)
            return
        await self.pop_view()
        self.command_bar.focus()

    def on_resize(self, event: events.Resize) -> None:
        state = self.dispatcher.state
        state.width, state.height = event.size.width, event.size.height
        self.stack.active.resized(state.width, state.height)

    # --- key routing ---

    async def action_route_key(self, key: str) -> None:
        active = self.stack.active
        route = route_key(key, command_bar_focused=self.command_bar.has_focus, active_captures=active.captures_input)
        if route in (KeyRoute.VIEW, KeyRoute.COMMAND_BAR):
            raise SkipAction()
        if route == KeyRoute.FOCUS_COMMAND_BAR:
            self.command_bar.focus()
        elif route == KeyRoute.BLUR_COMMAND_BAR:
            active.focus_input()
        elif route == KeyRoute.POP:
            await self.pop_view()
        elif route == KeyRoute.CANCEL_VIEW:
            active.cancel()
        elif route == KeyRoute.RECOMMEND:
            minutes = self.dispatcher.ctx.config.shell.default_minutes
            await self.push_view(RecommendationView(self.dispatcher, minutes=minutes))
        elif route == KeyRoute.QUIT:
            self.exit()
