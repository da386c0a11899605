"""
errors.py
---------

Exceptions raised across the journal. Degenerate input (empty trade
lists, missing optional fields) is never an error: the statistics engine
reports through its return values. Exceptions are reserved for the
collaborators: identity, storage and the write boundary.
"""

from dataclasses import dataclass
from typing import Optional


class JournalError(Exception):
    """Base class for journal errors."""


class MissingUser(JournalError):
    """No authenticated user for an operation that needs an owner."""

    def __init__(self, message: str = "You must be signed in to do that.") -> None:
        super().__init__(message)


@dataclass
class StorageUnavailable(JournalError):
    operation: str
    message: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code else ""
        return f"StorageUnavailable [{self.operation}]: {self.message}{status}"


class InvalidTrade(JournalError):
    """A new trade failed validation at the write boundary."""
