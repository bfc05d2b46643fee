"""
Per-entry results for best-effort batches.

Batches such as defaults synchronization or the startup activation pass
never raise as a whole; each entry settles into an Outcome instead.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class Outcome:
    """
    Settled result of one batch entry.

    Attributes:
        name: Entry name (addon or template directory name)
        value: Result value on success
        error: Exception on failure, None on success
    """

    name: str
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, name: str, value: Any = None) -> "Outcome":
        return cls(name=name, value=value)

    @classmethod
    def failure(cls, name: str, error: BaseException) -> "Outcome":
        return cls(name=name, error=error)


def failures(outcomes: list[Outcome]) -> list[Outcome]:
    """Return the failed outcomes of a batch."""
    return [outcome for outcome in outcomes if not outcome.ok]
