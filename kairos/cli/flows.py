"""Guided multi-step flows that collect the fields a bare command is missing.

A flow is a plain object: ``current()`` is the step awaiting input,
``submit()`` answers it, and ``command()`` is the command line to run once
every step is answered. The shell drives flows with terminal prompts, the TUI
with a form view; neither needs to know which flow it is running.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from kairos.cli.args import validate_optional_date, validate_positive_int
from kairos.cli.outcome import PendingAction
from kairos.constants import DEFAULT_LOG_MIN, DEFAULT_PLANNED_MIN, WIZARD_NODE_KINDS, WORK_ITEM_TYPES
from kairos.core.errors import KairosError, UserInputError
from kairos.core.models import ProjectStatus, WorkItemStatus
from kairos.core.ports import Services

logger = logging.getLogger(__name__)

Validator = Callable[[str], Optional[str]]


class StepKind(str, Enum):
    SELECT = "select"
    INPUT = "input"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class Choice:
    label: str
    value: str


def _required(value: str) -> Optional[str]:
    return None if value else "a value is required"


@dataclass(frozen=True)
class FormStep:
    key: str
    kind: StepKind
    prompt: str
    choices: tuple[Choice, ...] = ()
    default: str = ""
    validator: Optional[Validator] = None

    def normalize(self, raw: str) -> str:
        value = raw.strip()
        if not value:
            return self.default
        if self.kind == StepKind.CONFIRM:
            lowered = value.lower()
            if lowered in ("y", "yes"):
                return "yes"
            if lowered in ("n", "no"):
                return "no"
            return value
        if self.kind == StepKind.SELECT and value.isdigit():
            index = int(value)
            if 1 <= index <= len(self.choices):
                return self.choices[index - 1].value
        return value

    def check(self, value: str) -> Optional[str]:
        if self.kind == StepKind.CONFIRM and value not in ("yes", "no"):
            return "answer y or n"
        if self.kind == StepKind.SELECT and value not in {choice.value for choice in self.choices}:
            return f"choose 1-{len(self.choices)}"
        if self.validator is not None:
            return self.validator(value)
        return None


def confirm_step(prompt: str, default: bool = False) -> FormStep:
    return FormStep("confirm", StepKind.CONFIRM, prompt, default="yes" if default else "no")


class GuidedFlow:
    """Base class: subclasses decide the next step from the answers so far."""

    title = "Guided"

    def __init__(self) -> None:
        self.answers: dict[str, str] = {}
        self.error = ""
        self._step: Optional[FormStep] = None
        self._started = False

    def start(self) -> Optional[str]:
        """Compute the first step. Returns an error message if the flow cannot run."""
        self._started = True
        self._advance()
        return self.error or None

    def current(self) -> Optional[FormStep]:
        if not self._started:
            self.start()
        return self._step

    @property
    def complete(self) -> bool:
        return self._started and self._step is None and not self.error

    @property
    def aborted(self) -> bool:
        return bool(self.error)

    def submit(self, raw: str) -> Optional[str]:
        """Answer the current step. Returns an error message and keeps the step on bad input."""
        step = self.current()
        if step is None:
            raise RuntimeError(f"{type(self).__name__} has no pending step")
        value = step.normalize(raw)
        problem = step.check(value)
        if problem:
            return problem
        self.answers[step.key] = value
        self._advance()
        return self.error or None

    def _advance(self) -> None:
        try:
            self._step = self._next_step()
        except KairosError as exc:
            logger.warning("%s aborted: %s", type(self).__name__, exc)
            self._step = None
            self.error = str(exc)

    def _next_step(self) -> Optional[FormStep]:
        raise NotImplementedError

    def command(self) -> list[str]:
        raise NotImplementedError


class ConfirmFlow(GuidedFlow):
    """Single yes/no step guarding a pending action."""

    title = "Confirm"

    def __init__(self, action: PendingAction) -> None:
        super().__init__()
        self.action = action

    def _next_step(self) -> Optional[FormStep]:
        if "confirm" in self.answers:
            return None
        return confirm_step(self.action.prompt, self.action.default)

    @property
    def confirmed(self) -> bool:
        return self.answers.get("confirm") == "yes"

    def command(self) -> list[str]:
        return list(self.action.tokens)


class _ProjectScopedFlow(GuidedFlow):
    """Flow that first asks for a project when none is active."""

    def __init__(self, services: Services, project_id: str = "") -> None:
        super().__init__()
        self.services = services
        self._fixed_project = project_id
        self._choices: dict[str, tuple[Choice, ...]] = {}

    @property
    def project_id(self) -> str:
        return self._fixed_project or self.answers.get("project", "")

    def _project_step(self) -> Optional[FormStep]:
        if self.project_id:
            return None
        if "project" not in self._choices:
            projects = [
                p for p in self.services.projects.list_projects(include_archived=False)
                if p.status != ProjectStatus.ARCHIVED
            ]
            if not projects:
                raise UserInputError("No projects yet. Create one with 'project add' or 'draft'.")
            self._choices["project"] = tuple(Choice(f"{p.display_id}  {p.name}", p.id) for p in projects)
        return FormStep("project", StepKind.SELECT, "Select project", self._choices["project"])

    def _node_choices(self) -> tuple[Choice, ...]:
        if "node" not in self._choices:
            nodes = sorted(self.services.nodes.list_by_project(self.project_id), key=lambda n: n.order_index)
            if not nodes:
                raise UserInputError("Project has no nodes yet. Add one with 'node add'.")
            self._choices["node"] = tuple(Choice(f"#{n.seq} {n.title}", n.id) for n in nodes)
        return self._choices["node"]

    def _item_choices(self) -> tuple[Choice, ...]:
        if "item" not in self._choices:
            items = [
                item
                for item in self.services.work_items.list_by_project(self.project_id)
                if item.status not in (WorkItemStatus.DONE, WorkItemStatus.ARCHIVED)
            ]
            if not items:
                raise UserInputError("No open work items in this project.")
            self._choices["item"] = tuple(Choice(f"#{item.seq} {item.title}", item.id) for item in items)
        return self._choices["item"]


class ProjectSelectFlow(_ProjectScopedFlow):
    """Pick a project, then run ``tokens + [project_id]``."""

    title = "Select project"

    def __init__(self, services: Services, tokens: list[str]) -> None:
        super().__init__(services)
        self.tokens = list(tokens)

    def _next_step(self) -> Optional[FormStep]:
        return self._project_step()

    def command(self) -> list[str]:
        return self.tokens + [self.project_id]


class WorkAddFlow(_ProjectScopedFlow):
    title = "Add work item"

    def _next_step(self) -> Optional[FormStep]:
        step = self._project_step()
        if step:
            return step
        if "node" not in self.answers:
            return FormStep("node", StepKind.SELECT, "Select node", self._node_choices())
        if "title" not in self.answers:
            return FormStep("title", StepKind.INPUT, "Title", validator=_required)
        if "type" not in self.answers:
            types = tuple(Choice(t, t) for t in WORK_ITEM_TYPES)
            return FormStep("type", StepKind.SELECT, "Type", types, default="task")
        if "minutes" not in self.answers:
            return FormStep(
                "minutes", StepKind.INPUT, "Planned minutes", default=str(DEFAULT_PLANNED_MIN),
                validator=validate_positive_int,
            )
        if "due" not in self.answers:
            return FormStep("due", StepKind.INPUT, "Due date (YYYY-MM-DD, optional)", validator=validate_optional_date)
        return None

    def command(self) -> list[str]:
        tokens = [
            "work", "add",
            "--node", self.answers["node"],
            "--title", self.answers["title"],
            "--type", self.answers["type"],
            "--planned-min", self.answers["minutes"],
        ]
        if self.answers.get("due"):
            tokens += ["--due", self.answers["due"]]
        return tokens


class NodeAddFlow(_ProjectScopedFlow):
    title = "Add node"

    def _next_step(self) -> Optional[FormStep]:
        step = self._project_step()
        if step:
            return step
        if "title" not in self.answers:
            return FormStep("title", StepKind.INPUT, "Title", validator=_required)
        if "kind" not in self.answers:
            kinds = tuple(Choice(k, k) for k in WIZARD_NODE_KINDS)
            return FormStep("kind", StepKind.SELECT, "Kind", kinds, default="module")
        return None

    def command(self) -> list[str]:
        return [
            "node", "add",
            "--project", self.project_id,
            "--title", self.answers["title"],
            "--kind", self.answers["kind"],
        ]


class SessionLogFlow(_ProjectScopedFlow):
    title = "Log session"

    def __init__(self, services: Services, project_id: str = "", default_minutes: int = 0) -> None:
        super().__init__(services, project_id)
        self.default_minutes = default_minutes or DEFAULT_LOG_MIN

    def _next_step(self) -> Optional[FormStep]:
        step = self._project_step()
        if step:
            return step
        if "item" not in self.answers:
            return FormStep("item", StepKind.SELECT, "Select work item", self._item_choices())
        if "minutes" not in self.answers:
            return FormStep(
                "minutes", StepKind.INPUT, "Minutes", default=str(self.default_minutes),
                validator=validate_positive_int,
            )
        return None

    def command(self) -> list[str]:
        return ["session", "log", "--work-item", self.answers["item"], "--minutes", self.answers["minutes"]]


class ItemSelectFlow(_ProjectScopedFlow):
    """Pick an open work item for a session verb (``log``, ``start``, ``finish``)."""

    title = "Select work item"

    def __init__(self, services: Services, verb: str, project_id: str = "", extra: Optional[list[str]] = None) -> None:
        super().__init__(services, project_id)
        self.verb = verb
        self.extra = list(extra or [])

    def _next_step(self) -> Optional[FormStep]:
        step = self._project_step()
        if step:
            return step
        if "item" not in self.answers:
            return FormStep("item", StepKind.SELECT, "Select work item", self._item_choices())
        return None

    def command(self) -> list[str]:
        return [self.verb, self.answers["item"]] + self.extra
