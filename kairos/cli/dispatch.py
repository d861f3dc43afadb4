"""Turns one typed line into a ``DispatchResult``.

Built-in session verbs run against the session context directly, entity
groups go through confirmation and guided flows before reaching the argparse
surface, and ``ask`` is handed to the intent runner. Every ``KairosError`` is
caught here so a bad command never ends the session.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from kairos.cli import actions, commands, render
from kairos.cli.actions import CommandContext
from kairos.cli.args import has_force_flag, tokenize
from kairos.cli.ask import IntentRunner
from kairos.cli.flows import (
    ConfirmFlow,
    GuidedFlow,
    ItemSelectFlow,
    NodeAddFlow,
    ProjectSelectFlow,
    SessionLogFlow,
    WorkAddFlow,
)
from kairos.cli.outcome import DispatchResult, PendingAction, PendingKind, ViewRequest
from kairos.cli.resolve import resolve_project
from kairos.cli.session import SessionState
from kairos.cli.tui.types import OutputLevel, ViewID
from kairos.config import KairosConfig, get_config
from kairos.constants import DEFAULT_LOG_MIN
from kairos.core.errors import CommandError, KairosError
from kairos.core.models import WorkItem
from kairos.core.ports import Services

logger = logging.getLogger(__name__)

Builtin = Callable[[list[str]], DispatchResult]

GUIDED_CREATE = {
    ("work", "add"): WorkAddFlow,
    ("node", "add"): NodeAddFlow,
    ("session", "log"): SessionLogFlow,
}


class CommandDispatcher:
    """Single entry point for the shell, the TUI command bar and one-shot runs.

    ``views_enabled`` is set by the TUI: read verbs then answer with a
    ``ViewRequest`` instead of rendered text.
    """

    def __init__(
        self,
        services: Services,
        state: Optional[SessionState] = None,
        config: Optional[KairosConfig] = None,
        views_enabled: bool = False,
    ) -> None:
        config = config or get_config()
        if state is None:
            state = SessionState(cache_ttl_s=config.shell.project_cache_ttl_s)
        self.ctx = CommandContext(services, state, config)
        self.views_enabled = views_enabled
        self.intents = IntentRunner(self.ctx, views_enabled=views_enabled)
        self._builtins: dict[str, Builtin] = {
            "projects": self._projects,
            "use": self._use,
            "inspect": self._inspect,
            "what-now": self._what_now,
            "log": self._log,
            "start": self._start,
            "finish": self._finish,
            "context": self._context,
            "clear": lambda args: DispatchResult(clear=True),
            "exit": lambda args: DispatchResult(quit=True),
            "quit": lambda args: DispatchResult(quit=True),
            "shell": lambda args: DispatchResult(output="Already in shell mode."),
            "help": self._help,
            "draft": self._draft,
            "ask": self.intents.ask,
        }

    @property
    def services(self) -> Services:
        return self.ctx.services

    @property
    def state(self) -> SessionState:
        return self.ctx.state

    def detached(self) -> "CommandDispatcher":
        """A dispatcher over the same collaborators and a snapshot of the session.

        Lines run off the UI thread go through one; fold its context back
        with ``SessionState.merge``.
        """
        return CommandDispatcher(self.services, self.state.snapshot(), self.ctx.config, self.views_enabled)

    def verbs(self) -> list[str]:
        """Every first word the dispatcher accepts."""
        return sorted(set(self._builtins) | commands.top_level_commands())

    def dispatch(self, line: str) -> DispatchResult:
        """Execute one input line. Empty input is a no-op."""
        try:
            tokens = tokenize(line)
        except KairosError as exc:
            return DispatchResult.error(str(exc))
        if not tokens:
            return DispatchResult()
        return self.run_tokens(tokens)

    def run_tokens(self, tokens: list[str]) -> DispatchResult:
        logger.debug("dispatch: %s", tokens[0])
        try:
            return self._route(tokens)
        except KairosError as exc:
            return DispatchResult.error(str(exc))
        except Exception as exc:
            logger.exception("command %r failed", tokens[0])
            return DispatchResult.error(f"Error: {exc}")

    def confirm(self, pending: PendingAction, confirmed: bool) -> DispatchResult:
        """Resolve a pending action with the user's answer."""
        logger.info("%s %r %s", pending.kind.value, pending.prompt, "confirmed" if confirmed else "declined")
        if not confirmed:
            return DispatchResult(output="Cancelled.")
        if pending.kind == PendingKind.INTENT and pending.intent is not None:
            try:
                return self.intents.dispatch_intent(pending.intent)
            except KairosError as exc:
                return DispatchResult.error(str(exc))
        result = self.run_tokens(list(pending.tokens))
        if not result.is_error:
            result.refresh = True
        return result

    def complete_flow(self, flow: GuidedFlow) -> DispatchResult:
        """Run the command a finished flow produced."""
        if flow.aborted:
            return DispatchResult.error(flow.error)
        if isinstance(flow, ConfirmFlow):
            return self.confirm(flow.action, flow.confirmed)
        return self.run_tokens(flow.command())

    # --- routing ---

    def _route(self, tokens: list[str]) -> DispatchResult:
        verb, args = tokens[0], tokens[1:]
        builtin = self._builtins.get(verb)
        if builtin is not None:
            return builtin(args)
        if verb in commands.ENTITY_GROUPS:
            return self._entity(tokens)
        return self._passthrough(tokens)

    def _start_flow(self, flow: GuidedFlow) -> DispatchResult:
        error = flow.start()
        if error:
            return DispatchResult(output=error, level=OutputLevel.WARNING)
        if flow.complete:
            return self.complete_flow(flow)
        return DispatchResult(flow=flow)

    def _entity(self, tokens: list[str]) -> DispatchResult:
        group = tokens[0]
        if len(tokens) == 1:
            return DispatchResult(output=commands.group_help(group))
        sub = tokens[1]

        if group == "project" and sub == "draft":
            return self._draft(tokens[2:])

        flow_cls = GUIDED_CREATE.get((group, sub))
        if flow_cls is not None and len(tokens) == 2:
            if flow_cls is SessionLogFlow:
                return self._start_flow(
                    SessionLogFlow(self.services, self.state.active_project_id, self.state.last_duration)
                )
            return self._start_flow(flow_cls(self.services, self.state.active_project_id))

        if commands.is_destructive(group, sub) and len(tokens) > 2 and not has_force_flag(tokens):
            target = tokens[2]
            pending = PendingAction(PendingKind.COMMAND, f"{group} {sub} {target}?", tuple(tokens) + ("--yes",))
            return DispatchResult(pending=pending)

        return self._passthrough(tokens)

    def _passthrough(self, tokens: list[str]) -> DispatchResult:
        if tokens[0] not in commands.top_level_commands():
            parts = [f"Unknown command: {tokens[0]}. Type 'help' for available commands."]
            suggestions = commands.suggest_alternatives(" ".join(tokens))
            if suggestions:
                parts.append(suggestions)
            return DispatchResult.error("\n".join(parts))

        try:
            output = commands.run(self.ctx, tokens)
        except CommandError as exc:
            result = DispatchResult.error(self._enrich(exc, tokens))
            result.usage = exc.usage
            return result

        mutating = (len(tokens) > 1 and tokens[1] in commands.MUTATING) or tokens[0] == "replan"
        if mutating:
            self.state.invalidate_projects()
            return DispatchResult.success(output, refresh=True)
        return DispatchResult(output=output)

    def _enrich(self, exc: CommandError, tokens: list[str]) -> str:
        message = str(exc)
        parts = [message]
        hint = commands.hint_for_missing_flag(message, self.state.active_project_id, self.state.active_short_id)
        if hint:
            parts.append(hint)
        if "invalid choice" in message:
            suggestions = commands.suggest_alternatives(" ".join(tokens))
            if suggestions:
                parts.append(suggestions)
        return "\n".join(parts)

    # --- built-in verbs ---

    def _projects(self, args: list[str]) -> DispatchResult:
        if self.views_enabled:
            return DispatchResult(view=ViewRequest(ViewID.PROJECT_LIST))
        return DispatchResult(output=render.format_projects(self.ctx.projects()))

    def _use(self, args: list[str]) -> DispatchResult:
        if not args:
            self.state.clear_project_context()
            return DispatchResult(output="Cleared active project.", refresh=True)
        project = resolve_project(self.services, args[0])
        self.state.set_active_project(project.id, project.short_id, project.name)
        return DispatchResult.success(f"Using {project.name} ({project.short_id})", refresh=True)

    def _inspect(self, args: list[str]) -> DispatchResult:
        if args:
            project = resolve_project(self.services, args[0])
        elif self.state.active_project_id:
            project = self.services.projects.get_by_id(self.state.active_project_id)
        else:
            return self._start_flow(ProjectSelectFlow(self.services, ["inspect"]))
        if self.views_enabled:
            return DispatchResult(view=ViewRequest(ViewID.TASK_LIST, project_id=project.id))
        return DispatchResult(output=actions.project_tree(self.ctx, project))

    def _what_now(self, args: list[str]) -> DispatchResult:
        ns = commands.parse(["what-now"] + args)
        raw = ns.minutes_flag if ns.minutes_flag is not None else ns.minutes
        minutes = commands.parse_minutes(raw, self.ctx.config.shell.default_minutes)
        if self.views_enabled:
            return DispatchResult(view=ViewRequest(ViewID.RECOMMENDATION, minutes=minutes))
        return DispatchResult(output=actions.what_now(self.ctx, minutes, self.ctx.scope()))

    def _explicit_item(self, args: list[str]) -> tuple[Optional[WorkItem], str]:
        """Split ``[item] [minutes]``: a positive number is minutes, anything else names the item."""
        item_arg, minutes_arg = "", ""
        for arg in args:
            if arg.isdigit() and int(arg) > 0:
                if not minutes_arg:
                    minutes_arg = arg
            else:
                item_arg = arg
        item = actions.resolve_item(self.ctx, item_arg) if item_arg else None
        return item, minutes_arg

    def _log(self, args: list[str]) -> DispatchResult:
        item, minutes_arg = self._explicit_item(args)
        if item is None and self.state.active_item_id:
            item = self.services.work_items.get_by_id(self.state.active_item_id)
        if item is None and self.state.last_recommended_item_id:
            item = self.services.work_items.get_by_id(self.state.last_recommended_item_id)
        if item is None:
            extra = [minutes_arg] if minutes_arg else []
            return self._start_flow(ItemSelectFlow(self.services, "log", self.state.active_project_id, extra))

        minutes = int(minutes_arg) if minutes_arg else (self.state.last_duration or DEFAULT_LOG_MIN)
        return DispatchResult.success(actions.log_session(self.ctx, item, minutes), refresh=True)

    def _start(self, args: list[str]) -> DispatchResult:
        if not args:
            return self._start_flow(ItemSelectFlow(self.services, "start", self.state.active_project_id))
        item = actions.resolve_item(self.ctx, args[0])
        return DispatchResult.success(actions.start_item(self.ctx, item), refresh=True)

    def _finish(self, args: list[str]) -> DispatchResult:
        if args:
            item = actions.resolve_item(self.ctx, args[0])
        elif self.state.active_item_id:
            item = self.services.work_items.get_by_id(self.state.active_item_id)
        elif self.state.last_recommended_item_id:
            item = self.services.work_items.get_by_id(self.state.last_recommended_item_id)
        else:
            return self._start_flow(ItemSelectFlow(self.services, "finish", self.state.active_project_id))
        return DispatchResult.success(actions.finish_item(self.ctx, item), refresh=True)

    def _context(self, args: list[str]) -> DispatchResult:
        if not args:
            return DispatchResult(output=self.state.describe())
        what = args[0]
        if what == "clear":
            self.state.clear()
            return DispatchResult(output="Context cleared.", refresh=True)
        if what == "project":
            self.state.clear_project_context()
            return DispatchResult(output="Project context cleared.", refresh=True)
        if what == "item":
            self.state.clear_item_context()
            return DispatchResult(output="Item context cleared.")
        return DispatchResult.error(f"Unknown context option: {what} (expected clear, project or item)")

    def _help(self, args: list[str]) -> DispatchResult:
        infos = commands.build_command_spec().help_infos()
        if not args:
            return DispatchResult(output=render.format_command_list(infos))
        if args[0] == "chat":
            return DispatchResult(view=ViewRequest(ViewID.HELP_CHAT, text=" ".join(args[1:])))
        answer = actions.help_answer(self.ctx, " ".join(args), infos)
        return DispatchResult(output=render.format_help_answer(answer))

    def _draft(self, args: list[str]) -> DispatchResult:
        return DispatchResult(view=ViewRequest(ViewID.DRAFT, text=" ".join(args)))
