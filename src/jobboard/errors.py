"""Exception hierarchy shared by the board core, the store and its surfaces."""

from __future__ import annotations

from pydantic import ValidationError


class JobBoardError(Exception):
    """Base class for every failure the board surfaces to a caller."""


class RecordValidationError(JobBoardError, ValueError):
    """A required field is empty or a status value is not recognised."""

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "RecordValidationError":
        parts = []
        for error in exc.errors():
            location = ".".join(str(item) for item in error.get("loc", ()))
            message = error.get("msg", "invalid value")
            if message.startswith("Value error, "):
                message = message[len("Value error, ") :]
            parts.append(f"{location}: {message}" if location else message)
        return cls("; ".join(parts) or str(exc))


class RemoteFailure(JobBoardError):
    """The record store rejected or failed an operation."""


class RecordNotFound(RemoteFailure):
    pass


class SubscriptionFailure(JobBoardError):
    """The change notification channel could not be opened or dropped."""


class NotAuthenticated(JobBoardError):
    """A store operation was attempted with no signed-in user."""


class InvalidTransition(JobBoardError):
    """An edit session operation was requested from a state that forbids it."""
