"""
Result container for SecretBox operations.

``Result`` lets callers branch on an explicit error kind instead of relying
on exception propagation for the expected failure paths (wrong password,
corrupted storage).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .exceptions import ErrorKind, SecretBoxError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: either ``value`` or ``error`` is set."""

    value: Optional[T] = None
    error: Optional[SecretBoxError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return None if self.error is None else self.error.kind

    def unwrap(self) -> T:
        """Return the value or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SecretBoxError) -> "Result[T]":
        return cls(error=error)

    @classmethod
    def capture(cls, fn: Callable[..., T], *args, **kwargs) -> "Result[T]":
        """Call ``fn`` and wrap its return value or SecretBoxError."""
        try:
            return cls.success(fn(*args, **kwargs))
        except SecretBoxError as e:
            return cls.failure(e)
