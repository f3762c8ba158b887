"""Outcome: explicit success/failure result for calls that cross the external boundary.

Invariants:
    - Exactly one of value / error is meaningful: ok is True iff error is None
    - error is always a ThumbnailError subclass, so callers branch on its type or code

Design Decisions:
    - Returned (not raised) by generation, trial validation, transfer and persistence
      services; routes convert a failed Outcome into the ThumbnailError envelope
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from thumbnail_ai.core.errors import ThumbnailError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a boundary-crossing operation."""
    value: T | None = None
    error: ThumbnailError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ThumbnailError) -> "Outcome[T]":
        return cls(error=error)

    def unwrap(self) -> T | None:
        """Return the value or raise the carried error (route layer helper)."""
        if self.error is not None:
            raise self.error
        return self.value
