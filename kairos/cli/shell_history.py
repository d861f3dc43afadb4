"""Bounded command history shared by the line shell and the TUI command bar.

History is recall only; read and write failures are logged at debug level
and otherwise ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from prompt_toolkit.history import History

from kairos.constants import SHELL_HISTORY_LIMIT

logger = logging.getLogger(__name__)


class ShellHistory:
    def __init__(self, path: Optional[Path], limit: int = SHELL_HISTORY_LIMIT) -> None:
        self.path = path
        self.limit = max(limit, 1)
        self.entries: list[str] = []
        self._cursor: Optional[int] = None

    def load(self) -> list[str]:
        """Read the most recent ``limit`` non-empty lines."""
        self.entries = []
        if self.path is None:
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = [line.strip() for line in f]
        except OSError as exc:
            logger.debug("no shell history at %s: %s", self.path, exc)
            return []
        self.entries = [line for line in lines if line][-self.limit :]
        return list(self.entries)

    def append(self, line: str) -> None:
        line = line.strip()
        self._cursor = None
        if not line:
            return
        self.entries.append(line)
        overflow = len(self.entries) > self.limit
        if overflow:
            self.entries = self.entries[-self.limit :]
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if overflow:
                self.path.write_text("\n".join(self.entries) + "\n", encoding="utf-8")
            else:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
        except OSError as exc:
            logger.debug("could not write shell history %s: %s", self.path, exc)

    def older(self) -> Optional[str]:
        """Step back through history (up arrow)."""
        if not self.entries:
            return None
        if self._cursor is None:
            self._cursor = len(self.entries) - 1
        elif self._cursor > 0:
            self._cursor -= 1
        return self.entries[self._cursor]

    def newer(self) -> str:
        """Step forward (down arrow); past the newest entry returns an empty line."""
        if self._cursor is None:
            return ""
        if self._cursor >= len(self.entries) - 1:
            self._cursor = None
            return ""
        self._cursor += 1
        return self.entries[self._cursor]


class PromptHistory(History):
    """prompt_toolkit history over a ``ShellHistory``.

    Up/down recall in the line shell walks the same entries as the TUI
    command bar, and accepted lines land in the same file.
    """

    def __init__(self, shell_history: ShellHistory) -> None:
        super().__init__()
        self.shell_history = shell_history

    def load_history_strings(self) -> Iterable[str]:
        # prompt_toolkit expects newest first
        return list(reversed(self.shell_history.entries))

    def store_string(self, string: str) -> None:
        self.shell_history.append(string)
