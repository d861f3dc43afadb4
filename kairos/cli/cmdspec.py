"""Structured catalog of every command, used for suggestions and LLM grounding."""

from __future__ import annotations

from dataclasses import dataclass, field

from kairos.intelligence.contracts import HelpCommandInfo


@dataclass(frozen=True)
class FlagEntry:
    name: str
    description: str = ""
    shorthand: str = ""
    default: str = ""
    required: bool = False


@dataclass(frozen=True)
class CommandEntry:
    full_path: str
    short: str
    flags: tuple[FlagEntry, ...] = ()


@dataclass
class CommandSpec:
    commands: list[CommandEntry] = field(default_factory=list)

    def add(self, entry: CommandEntry) -> None:
        self.commands.append(entry)

    def fuzzy_match(self, query: str, n: int) -> list[CommandEntry]:
        """Return up to ``n`` commands whose path or description contains the query terms.

        Commands are ranked by how many lower-cased terms they contain; equal
        scores keep declaration order.
        """
        terms = query.lower().split()
        if not terms:
            return []

        scored: list[tuple[int, CommandEntry]] = []
        for cmd in self.commands:
            path, short = cmd.full_path.lower(), cmd.short.lower()
            hits = sum(1 for term in terms if term in path or term in short)
            if hits:
                scored.append((hits, cmd))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [cmd for _, cmd in scored[:n]]

    def help_infos(self) -> list[HelpCommandInfo]:
        return [HelpCommandInfo(cmd.full_path, cmd.short) for cmd in self.commands]
