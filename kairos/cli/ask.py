"""Natural-language ``ask``: resolve free text to an intent, gate it by risk, dispatch it."""

from __future__ import annotations

import logging
from typing import Optional

from kairos.cli import actions, render
from kairos.cli.actions import CommandContext
from kairos.cli.args import bool_arg, has_force_flag, int_arg, parse_date_arg, string_arg, strip_force_flags
from kairos.cli.command_hint import command_hint
from kairos.cli.outcome import DispatchResult, PendingAction, PendingKind
from kairos.cli.resolve import match_project
from kairos.cli.tui.types import OutputLevel
from kairos.constants import DEFAULT_AVAILABLE_MIN
from kairos.core.errors import ResolutionError, ResolutionTimeout, UserInputError
from kairos.intelligence.contracts import (
    AskResolution,
    ConfirmationPolicy,
    ExecutionState,
    IntentName,
    ParsedIntent,
    enforce_write_safety,
)

logger = logging.getLogger(__name__)

LLM_DISABLED_MESSAGE = (
    "LLM features are disabled. Use explicit commands:\n"
    "  kairos what-now --minutes 60\n"
    "  kairos status\n"
    "  kairos project list\n\n"
    "Enable with: KAIROS_LLM_ENABLED=true"
)

CONFIRM_PROMPT = "Confirm?"


class IntentRunner:
    """Runs ``ask`` against the intent collaborator and dispatches resolved intents.

    ``views_enabled`` selects the terminal-UI variant: status is scoped to the
    active project and non-dispatched intents answer with a short ``Run:`` hint.
    """

    def __init__(self, ctx: CommandContext, views_enabled: bool = False) -> None:
        self.ctx = ctx
        self.views_enabled = views_enabled
        self.policy = ConfirmationPolicy(auto_execute_read_threshold=ctx.config.llm.confidence_threshold)

    @property
    def available(self) -> bool:
        return self.ctx.services.intent is not None

    def resolve(self, text: str) -> AskResolution:
        """Parse ``text`` and apply the write-safety gate.

        A resolution reported as executed is re-checked against the policy:
        write risk drops it to needs-confirmation and a read below the
        confidence threshold to needs-clarification.

        Raises:
            ResolutionError: when the collaborator fails or times out.
        """
        if self.ctx.services.intent is None:
            raise ResolutionError("intent service is not configured")
        try:
            resolution = self.ctx.services.intent.parse(text)
        except ResolutionTimeout as exc:
            raise ResolutionError(f"parse failed: {exc} (set KAIROS_LLM_PARSE_TIMEOUT_MS, e.g. 15000)") from exc
        except ResolutionError as exc:
            raise ResolutionError(f"parse failed: {exc}") from exc

        intent = resolution.parsed_intent
        if intent is not None:
            enforce_write_safety(intent)
            if resolution.execution_state == ExecutionState.EXECUTED:
                gated = self.policy.evaluate(intent)
                if gated != ExecutionState.EXECUTED:
                    logger.warning(
                        "intent %s resolved as executed; policy requires %s", intent.intent.value, gated.value
                    )
                    resolution.execution_state = gated
        if not resolution.command_hint:
            resolution.command_hint = command_hint(intent)
        return resolution

    def ask(self, args: list[str]) -> DispatchResult:
        if not self.available:
            return DispatchResult(output=LLM_DISABLED_MESSAGE, level=OutputLevel.WARNING)

        forced = has_force_flag(args)
        text = " ".join(strip_force_flags(args)).strip()
        if not text:
            return DispatchResult.error('usage: ask "<natural language>"')

        resolution = self.resolve(text)
        header = render.format_ask_resolution(resolution)
        intent = resolution.parsed_intent
        state = resolution.execution_state
        logger.debug("ask resolved to %s (%s)", intent.intent.value if intent else None, state.value)

        if intent is None or state in (ExecutionState.NEEDS_CLARIFICATION, ExecutionState.REJECTED):
            level = OutputLevel.WARNING if state == ExecutionState.REJECTED else OutputLevel.INFO
            return DispatchResult(output=header, level=level)

        if state == ExecutionState.EXECUTED:
            result = self.dispatch_intent(intent)
            result.output = header + result.output
            return result

        if forced:
            logger.info("write intent %s confirmed by flag", intent.intent.value)
            result = self.dispatch_intent(intent)
            result.output = header + result.output
            return result

        pending = PendingAction(PendingKind.INTENT, CONFIRM_PROMPT, intent=intent, default=True)
        return DispatchResult(output=header, pending=pending)

    def dispatch_intent(self, intent: ParsedIntent) -> DispatchResult:
        """Map a resolved intent to collaborator calls."""
        args = intent.arguments
        name = intent.intent
        ctx = self.ctx

        if name == IntentName.WHAT_NOW:
            minutes = int_arg(args, "available_min", DEFAULT_AVAILABLE_MIN)
            if minutes <= 0:
                minutes = DEFAULT_AVAILABLE_MIN
            return DispatchResult(output=actions.what_now(ctx, minutes, self._status_scope()))

        if name == IntentName.STATUS:
            return DispatchResult(output=actions.status(ctx, self._status_scope()))

        if name == IntentName.PROJECT_UPDATE:
            return DispatchResult.success(self._project_update(intent), refresh=True)

        if name == IntentName.PROJECT_IMPORT:
            path = string_arg(args, "file_path")
            if not path:
                raise UserInputError("file_path is required for project import")
            return DispatchResult.success(actions.import_file(ctx, path), refresh=True)

        if name == IntentName.EXPLAIN_NOW:
            minutes = int_arg(args, "minutes", DEFAULT_AVAILABLE_MIN)
            return DispatchResult(output=actions.explain_now(ctx, minutes if minutes > 0 else DEFAULT_AVAILABLE_MIN))

        if name == IntentName.REVIEW_WEEKLY:
            return DispatchResult(output=actions.review_weekly(ctx))

        hint = command_hint(intent)
        if self.views_enabled:
            return DispatchResult(output=f"Run: {hint}" if hint else f'No command for intent "{name.value}".')
        message = f'Intent "{name.value}" dispatched. Use the explicit CLI command to execute'
        return DispatchResult(output=f"{message}: {hint}\n" if hint else f"{message}.\n")

    def _status_scope(self) -> Optional[list[str]]:
        return self.ctx.scope() if self.views_enabled else None

    def _project_update(self, intent: ParsedIntent) -> str:
        args = intent.arguments
        query = string_arg(args, "project_id")
        if not query:
            raise UserInputError("project_id is required for project update")
        project = match_project(self.ctx.services.projects.list_projects(include_archived=True), query)

        changes: dict[str, object] = {}
        if "target_date" in args:
            raw = args["target_date"]
            if raw is None:
                changes["target_date"] = None
            elif isinstance(raw, str):
                changes["target_date"] = parse_date_arg(raw, "target_date")
            else:
                raise UserInputError(f"invalid target_date {raw!r} (expected YYYY-MM-DD or null)")

        project = actions.update_project(
            self.ctx.services,
            project,
            name=string_arg(args, "name"),
            status=string_arg(args, "status"),
            **changes,
        )
        self.ctx.state.project_updated(project)

        output = f"✔ Updated project {project.name} [{project.short_id}]\n"
        if bool_arg(args, "recalc", False):
            output += actions.status(self.ctx, [project.id], recalc=True)
        return output
