"""Phase state machine for the guided structure wizard.

Each phase is an immutable value. ``advance(collected, text)`` returns a
``Transition`` carrying the next phase and the updated answers; nothing is
mutated in place, so a driver can keep, discard or replay states freely.
Bad input never fails: a warning is attached and a default substituted.
Order:

    description -> start date -> deadline -> group count
    -> (label -> node count -> kind -> days per node) x groups
    -> (work item title -> type -> minutes)* -> (special title -> kind
    -> due date -> (item title -> type -> minutes)*)* -> review
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional

from kairos.cli.draft.structure import Group, SpecialNode, WizardResult, WorkItemTemplate
from kairos.constants import SPECIAL_NODE_KINDS, WIZARD_NODE_KINDS, WORK_ITEM_TYPES
from kairos.importer.validate import parse_iso_date

logger = logging.getLogger(__name__)

DEFAULT_GROUP_COUNT = 1
DEFAULT_NODE_COUNT = 1
DEFAULT_ITEM_MINUTES = 30
DEFAULT_GROUP_LABEL = "Module"


class ReviewAction(str, Enum):
    ACCEPT = "accept"
    REFINE = "refine"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Collected:
    """Answers accumulated so far."""

    description: str = ""
    start_date: str = ""
    deadline: str = ""
    group_total: int = DEFAULT_GROUP_COUNT
    groups: tuple[Group, ...] = ()
    work_items: tuple[WorkItemTemplate, ...] = ()
    special_nodes: tuple[SpecialNode, ...] = ()

    def result(self) -> WizardResult:
        return WizardResult(
            description=self.description,
            start_date=self.start_date,
            deadline=self.deadline,
            groups=self.groups,
            work_items=self.work_items,
            special_nodes=self.special_nodes,
        )


@dataclass(frozen=True)
class Transition:
    phase: "Phase"
    collected: Collected
    warnings: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    action: Optional[ReviewAction] = None


class Phase:
    """Base class for wizard phases."""

    prompt = ""

    def advance(self, collected: Collected, text: str) -> Transition:
        raise NotImplementedError

    def _go(
        self, phase: "Phase", collected: Collected, *, warning: str = "", note: str = ""
    ) -> Transition:
        if warning:
            logger.warning("%s: %s", type(self).__name__, warning)
        return Transition(
            phase, collected, warnings=(warning,) if warning else (), notes=(note,) if note else ()
        )


def _positive_int(text: str) -> Optional[int]:
    try:
        value = int(text)
    except ValueError:
        return None
    return value if value >= 1 else None


# --- project metadata ---


@dataclass(frozen=True)
class DescriptionPhase(Phase):
    prompt = "Describe your project:"

    def advance(self, collected: Collected, text: str) -> Transition:
        if not text:
            return self._go(self, collected, warning="Project description is required.")
        return self._go(StartDatePhase(), replace(collected, description=text), note=f"Description: {text}")


@dataclass(frozen=True)
class StartDatePhase(Phase):
    today: date = field(default_factory=date.today)
    prompt = "When do you want to start? (YYYY-MM-DD, or Enter for today)"

    def advance(self, collected: Collected, text: str) -> Transition:
        start, warning = self.today.isoformat(), ""
        if text:
            parsed = parse_iso_date(text)
            if parsed is not None:
                start = parsed.isoformat()
            else:
                warning = "Invalid date, using today."
        return self._go(DeadlinePhase(), replace(collected, start_date=start), warning=warning, note=f"Start: {start}")


@dataclass(frozen=True)
class DeadlinePhase(Phase):
    prompt = "When is the deadline? (YYYY-MM-DD, or Enter to skip)"

    def advance(self, collected: Collected, text: str) -> Transition:
        deadline, warning = "", ""
        if text:
            parsed = parse_iso_date(text)
            start = parse_iso_date(collected.start_date)
            if parsed is None:
                warning = "Invalid date, no deadline set."
            elif start is not None and parsed <= start:
                warning = "Deadline must be after the start date, no deadline set."
            else:
                deadline = parsed.isoformat()
        return self._go(
            GroupCountPhase(),
            replace(collected, deadline=deadline, groups=(), work_items=(), special_nodes=()),
            warning=warning,
            note=f"Deadline: {deadline or 'none'}",
        )


# --- groups ---


@dataclass(frozen=True)
class GroupCountPhase(Phase):
    prompt = "How many groups of work? (e.g., phases, levels; Enter for 1)"

    def advance(self, collected: Collected, text: str) -> Transition:
        count, warning = DEFAULT_GROUP_COUNT, ""
        if text:
            parsed = _positive_int(text)
            if parsed is None:
                warning = f"Invalid number, using {DEFAULT_GROUP_COUNT}."
            else:
                count = parsed
        return self._go(GroupLabelPhase(index=0, total=count), replace(collected, group_total=count), warning=warning)


@dataclass(frozen=True)
class GroupLabelPhase(Phase):
    index: int = 0
    total: int = 1

    @property
    def prompt(self) -> str:  # type: ignore[override]
        if self.total > 1:
            return f'--- Group {self.index + 1} ---\nLabel (e.g., "Chapter", "Week", "A2 Module"):'
        return 'Node label (e.g., "Chapter", "Week", "Module"):'

    def advance(self, collected: Collected, text: str) -> Transition:
        group = Group(label=text or DEFAULT_GROUP_LABEL, count=DEFAULT_NODE_COUNT)
        return self._go(GroupNodeCountPhase(self.index, group), collected)


@dataclass(frozen=True)
class GroupNodeCountPhase(Phase):
    index: int
    group: Group
    prompt = "How many?"

    def advance(self, collected: Collected, text: str) -> Transition:
        count, warning = DEFAULT_NODE_COUNT, ""
        parsed = _positive_int(text) if text else None
        if parsed is None:
            if text:
                warning = f"Invalid number, using {DEFAULT_NODE_COUNT}."
        else:
            count = parsed
        return self._go(GroupKindPhase(self.index, replace(self.group, count=count)), collected, warning=warning)


@dataclass(frozen=True)
class GroupKindPhase(Phase):
    index: int
    group: Group
    prompt = f"Node kind [{'/'.join(WIZARD_NODE_KINDS)}] (Enter for module):"

    def advance(self, collected: Collected, text: str) -> Transition:
        kind, warning = "module", ""
        if text:
            lowered = text.lower()
            if lowered in WIZARD_NODE_KINDS:
                kind = lowered
            else:
                warning = "Invalid kind, using module."
        return self._go(GroupDaysPhase(self.index, replace(self.group, kind=kind)), collected, warning=warning)


@dataclass(frozen=True)
class GroupDaysPhase(Phase):
    index: int
    group: Group
    prompt = "Days per node (Enter to spread evenly):"

    def advance(self, collected: Collected, text: str) -> Transition:
        group, warning = self.group, ""
        if text:
            days = _positive_int(text)
            if days is None:
                warning = "Invalid number, spreading evenly."
            else:
                group = replace(group, days_per=days)

        collected = replace(collected, groups=collected.groups + (group,))
        note = f"Group: {group.label} x{group.count} ({group.kind})"
        nxt: Phase
        if self.index + 1 < collected.group_total:
            nxt = GroupLabelPhase(index=self.index + 1, total=collected.group_total)
        else:
            nxt = ItemTitlePhase()
        return self._go(nxt, collected, warning=warning, note=note)


# --- work items (shared by the per-node loop and each special node) ---


@dataclass(frozen=True)
class ItemTitlePhase(Phase):
    """Work item loop. ``special`` set means items belong to that special node."""

    special: Optional[SpecialNode] = None

    @property
    def prompt(self) -> str:  # type: ignore[override]
        if self.special is not None:
            return "Work item title (Enter when done):"
        return "--- Work items (applied to every node) ---\nTitle (Enter when done):"

    def advance(self, collected: Collected, text: str) -> Transition:
        if text:
            return self._go(ItemTypePhase(WorkItemTemplate(title=text), self.special), collected)
        if self.special is None:
            return self._go(SpecialTitlePhase(), collected)
        collected = replace(collected, special_nodes=collected.special_nodes + (self.special,))
        return self._go(
            SpecialTitlePhase(), collected, note=f"+ Special: {self.special.title} ({self.special.kind})"
        )


@dataclass(frozen=True)
class ItemTypePhase(Phase):
    item: WorkItemTemplate
    special: Optional[SpecialNode] = None
    prompt = f"Type [{'/'.join(WORK_ITEM_TYPES)}] (Enter for task):"

    def advance(self, collected: Collected, text: str) -> Transition:
        item_type, warning = "task", ""
        if text:
            lowered = text.lower()
            if lowered in WORK_ITEM_TYPES:
                item_type = lowered
            else:
                warning = "Invalid type, using task."
        return self._go(ItemMinutesPhase(replace(self.item, type=item_type), self.special), collected, warning=warning)


@dataclass(frozen=True)
class ItemMinutesPhase(Phase):
    item: WorkItemTemplate
    special: Optional[SpecialNode] = None
    prompt = f"Estimated minutes (Enter for {DEFAULT_ITEM_MINUTES}):"

    def advance(self, collected: Collected, text: str) -> Transition:
        minutes, warning = DEFAULT_ITEM_MINUTES, ""
        if text:
            parsed = _positive_int(text)
            if parsed is None:
                warning = f"Invalid number, using {DEFAULT_ITEM_MINUTES}."
            else:
                minutes = parsed
        item = replace(self.item, planned_min=minutes)

        if self.special is not None:
            special = replace(self.special, work_items=self.special.work_items + (item,))
            return self._go(ItemTitlePhase(special), collected, warning=warning)
        collected = replace(collected, work_items=collected.work_items + (item,))
        return self._go(
            ItemTitlePhase(), collected, warning=warning, note=f"+ {item.title} ({item.type}, {item.planned_min}m)"
        )


# --- special nodes ---


@dataclass(frozen=True)
class SpecialTitlePhase(Phase):
    prompt = "--- Special nodes (exams, milestones) ---\nTitle (Enter to skip):"

    def advance(self, collected: Collected, text: str) -> Transition:
        if not text:
            return self._go(ReviewPhase(), collected)
        return self._go(SpecialKindPhase(SpecialNode(title=text)), collected)


@dataclass(frozen=True)
class SpecialKindPhase(Phase):
    special: SpecialNode
    prompt = f"Kind [{'/'.join(SPECIAL_NODE_KINDS)}] (Enter for assessment):"

    def advance(self, collected: Collected, text: str) -> Transition:
        kind, warning = "assessment", ""
        if text:
            lowered = text.lower()
            if lowered in SPECIAL_NODE_KINDS:
                kind = lowered
            else:
                warning = "Invalid kind, using assessment."
        return self._go(SpecialDuePhase(replace(self.special, kind=kind)), collected, warning=warning)


@dataclass(frozen=True)
class SpecialDuePhase(Phase):
    special: SpecialNode
    prompt = "Due date (YYYY-MM-DD, Enter for the deadline):"

    def advance(self, collected: Collected, text: str) -> Transition:
        special, warning = self.special, ""
        if text:
            parsed = parse_iso_date(text)
            if parsed is None:
                warning = "Invalid date, using the deadline."
            else:
                special = replace(special, due_date=parsed.isoformat())
        return self._go(ItemTitlePhase(special), collected, warning=warning)


# --- review ---


@dataclass(frozen=True)
class ReviewPhase(Phase):
    refine_available: bool = False

    @property
    def prompt(self) -> str:  # type: ignore[override]
        if self.refine_available:
            return "[a]ccept  [r]efine with AI  [c]ancel:"
        return "[a]ccept  [c]ancel:"

    def advance(self, collected: Collected, text: str) -> Transition:
        choice = text.lower()
        if choice in ("a", "accept"):
            return Transition(self, collected, action=ReviewAction.ACCEPT)
        if choice in ("c", "cancel"):
            return Transition(self, collected, action=ReviewAction.CANCEL)
        if choice in ("r", "refine"):
            if not self.refine_available:
                return self._go(self, collected, warning="LLM features are disabled. Accept the draft or cancel.")
            return Transition(self, collected, action=ReviewAction.REFINE)
        return self._go(self, collected, warning="Invalid option.")
