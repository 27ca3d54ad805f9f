"""Error types shared by the analysis pipeline.

Two failure kinds exist:

    ValidationError: the user's input is wrong (bad clock, missing field,
    wrong day count, unknown time zone). Carries every message found in
    one pass so the caller can show them all at once.

    InvariantError: a caller skipped the parser and handed the engine
    input that violates its preconditions. Not a user-facing message.
"""

from collections.abc import Iterable


class SleepAnalysisError(Exception):
    """Base class for analysis pipeline errors."""


class FormatError(SleepAnalysisError, ValueError):
    """A clock string is malformed or out of range."""


class ValidationError(SleepAnalysisError):
    """Input failed validation.

    Attributes:
        errors: Every validation message, in the order they were found
    """

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        summary = self.errors[0] if self.errors else "Input validation failed"
        if len(self.errors) > 1:
            summary += f" (+{len(self.errors) - 1} more)"
        super().__init__(summary)


class InvariantError(SleepAnalysisError):
    """Engine precondition violated by the caller."""
