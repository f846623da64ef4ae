"""
Result Type
===========

Explicit success/failure return for auxiliary lookups (headers, service
catalog) so the caller decides whether an empty default is acceptable.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation that may fail without raising."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return the value, or ``default`` when the operation failed."""
        if self.error is not None:
            return default
        return self.value
