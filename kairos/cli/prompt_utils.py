"""Terminal formatting and prompt helpers for the line shell."""

from __future__ import annotations

import sys
from typing import Callable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from kairos.cli.flows import FormStep, GuidedFlow, StepKind
from kairos.cli.shell_history import PromptHistory, ShellHistory
from kairos.cli.tui.types import OutputLevel

BOLD = "\033[1m"
DIM = "\033[2m"
GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
CYAN = "\033[36m"
RESET = "\033[0m"

_LEVEL_COLOR = {
    OutputLevel.SUCCESS: GREEN,
    OutputLevel.WARNING: YELLOW,
    OutputLevel.ERROR: RED,
}

Reader = Callable[[str], Optional[str]]


def styled(text: str, level: OutputLevel) -> str:
    color = _LEVEL_COLOR.get(level)
    return f"{color}{text}{RESET}" if color else text


def print_header(title: str) -> None:
    print(f"\n{BOLD}{CYAN}{title}{RESET}")
    print(f"{DIM}{'─' * len(title)}{RESET}")


def is_interactive() -> bool:
    return bool(getattr(sys.stdin, "isatty", lambda: False)() and getattr(sys.stdout, "isatty", lambda: False)())


class LineReader:
    """Reads shell input one line at a time.

    On a terminal, commands are read through a prompt_toolkit session whose
    up/down recall walks ``history``; answers to follow-up questions use a
    separate session so they never enter the command history. Piped input is
    read with ``input()`` and commands are still recorded.

    EOF and Ctrl-C come back as ``None``.
    """

    def __init__(self, history: Optional[ShellHistory] = None, interactive: Optional[bool] = None) -> None:
        self.history = history or ShellHistory(None)
        self.interactive = is_interactive() if interactive is None else interactive
        self._commands: Optional[PromptSession[str]] = None
        self._answers: Optional[PromptSession[str]] = None
        if self.interactive:
            self._commands = PromptSession(history=PromptHistory(self.history))
            self._answers = PromptSession(history=InMemoryHistory())

    def command(self, prompt: str) -> Optional[str]:
        """Read one command line; non-blank lines are added to the history."""
        if self._commands is not None:
            return self._read(self._commands.prompt, prompt)
        line = self._read(input, prompt)
        if line is not None:
            self.history.append(line)
        return line

    def answer(self, prompt: str) -> Optional[str]:
        """Read a reply to a confirmation, flow step or conversation turn."""
        if self._answers is not None:
            return self._read(self._answers.prompt, prompt)
        return self._read(input, prompt)

    @staticmethod
    def _read(read: Callable[[str], str], prompt: str) -> Optional[str]:
        try:
            return read(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            return None


def prompt_confirm(read: Reader, message: str, default: bool = True) -> bool:
    """Yes/no confirmation prompt."""
    hint = "[Y/n]" if default else "[y/N]"
    raw = read(f"  {message} {hint}: ")
    if raw is None:
        return False
    raw = raw.strip().lower()
    if not raw:
        return default
    return raw in ("y", "yes")


def _step_prompt(step: FormStep) -> str:
    if step.kind == StepKind.CONFIRM:
        hint = "[Y/n]" if step.default == "yes" else "[y/N]"
        return f"  {step.prompt} {hint}: "
    suffix = f" [{step.default}]" if step.default else ""
    return f"  {step.prompt}{suffix}: "


def run_flow(read: Reader, flow: GuidedFlow) -> bool:
    """Prompt for every step of ``flow``. Returns False if the user bailed out."""
    if flow.title:
        print_header(flow.title)
    while True:
        step = flow.current()
        if step is None:
            return not flow.aborted
        if step.kind == StepKind.SELECT:
            print()
            for i, choice in enumerate(step.choices, 1):
                print(f"  {i}. {choice.label}")
        raw = read(_step_prompt(step))
        if raw is None:
            return False
        problem = flow.submit(raw)
        if problem and flow.aborted:
            print(f"  {RED}{problem}{RESET}")
            return False
        if problem:
            print(f"  {RED}{problem}{RESET}")
