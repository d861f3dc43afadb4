"""Error taxonomy for the session engine.

User input errors are recovered locally with a corrective message; service
errors are fatal for the single command that raised them.
"""

from __future__ import annotations


class KairosError(Exception):
    """Base class for all kairos errors."""


class UserInputError(KairosError):
    """Malformed or insufficient user input; the message is shown as-is."""


class NotFoundError(UserInputError):
    """A referenced project, node, work item or template does not exist."""


class AmbiguousMatchError(UserInputError):
    """A prefix matched more than one candidate."""

    def __init__(self, kind: str, query: str, count: int) -> None:
        super().__init__(f'{kind} ID prefix "{query}" is ambiguous ({count} matches)')
        self.kind = kind
        self.query = query
        self.count = count


class CommandError(UserInputError):
    """The argument parser rejected a command line."""

    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage


class ResolutionError(KairosError):
    """The natural-language collaborator failed."""


class ResolutionTimeout(ResolutionError):
    """The natural-language collaborator did not answer in time."""


class ServiceError(KairosError):
    """A repository or import collaborator failed."""


class SchemaValidationError(UserInputError):
    """An import schema failed validation; ``errors`` lists every problem."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("schema validation failed:\n" + "\n".join(f"  - {e}" for e in errors))
        self.errors = errors
