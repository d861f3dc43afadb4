"""Values the dispatcher hands back to whichever front end drives it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from kairos.cli.tui.types import OutputLevel, ViewID
from kairos.intelligence.contracts import ParsedIntent

if TYPE_CHECKING:
    from kairos.cli.flows import GuidedFlow


class PendingKind(str, Enum):
    """What a confirmed pending action runs."""

    COMMAND = "command"
    INTENT = "intent"


@dataclass(frozen=True)
class PendingAction:
    """An action held back until the user confirms it.

    ``tokens`` is the command line to run for COMMAND actions; ``intent`` is the
    parsed intent to dispatch for INTENT actions.
    """

    kind: PendingKind
    prompt: str
    tokens: tuple[str, ...] = ()
    intent: Optional[ParsedIntent] = None
    default: bool = False


@dataclass(frozen=True)
class ViewRequest:
    view: ViewID
    project_id: str = ""
    minutes: int = 0
    text: str = ""


@dataclass
class DispatchResult:
    output: str = ""
    level: OutputLevel = OutputLevel.INFO
    refresh: bool = False
    quit: bool = False
    clear: bool = False
    view: Optional[ViewRequest] = None
    flow: Optional["GuidedFlow"] = None
    pending: Optional[PendingAction] = None
    usage: str = ""

    @property
    def is_error(self) -> bool:
        return self.level == OutputLevel.ERROR

    @classmethod
    def error(cls, message: str) -> "DispatchResult":
        return cls(output=message, level=OutputLevel.ERROR)

    @classmethod
    def success(cls, message: str, refresh: bool = False) -> "DispatchResult":
        return cls(output=message, level=OutputLevel.SUCCESS, refresh=refresh)
