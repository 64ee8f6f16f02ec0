"""Outcome types for booking operations.

Expected business conditions (slot taken, entity missing, bad input, illegal
transition) are returned as ``Result`` failures so callers can branch without
try/except. Only faults that mean the ledger itself is broken are raised.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure taxonomy shared by the ledger, the service layer and the API."""
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"  # retry with another slot
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"  # raised by the orchestration layer only
    INVALID_TRANSITION = "INVALID_TRANSITION"


class LedgerIntegrityError(RuntimeError):
    """The ledger's indexes disagree with each other. Not recoverable."""


class ResultError(RuntimeError):
    """Raised by ``Result.unwrap()`` on a failed result."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or (kind, message) failure."""
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=kind, message=message)

    def unwrap(self) -> T:
        """Return the value, or raise ``ResultError`` if this is a failure."""
        if self.error is not None:
            raise ResultError(self.error, self.message)
        return self.value
