"""
riff.errors — Engine Error Hierarchy
=====================================

Every rule the ledger enforces fails with one of these.  They are ordinary
recoverable exceptions: callers render ``message`` and let the user retry.
"""

from __future__ import annotations


class RiffException(Exception):
    """Base exception for all Riff engine errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(RiffException):
    """Raised when input is malformed (riff content, username)."""

    def __init__(self, field: str, message: str):
        super().__init__(message=message, details=f"Invalid value for '{field}'")
        self.field = field


class ConflictError(RiffException):
    """Raised when a business rule forbids the action in the current state.

    Duplicate daily submission, second edit, edit after a vote, double
    vote, retracting a vote that was never cast, voting on a closed day.
    """

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message=message, details=details)


class AuthorizationError(RiffException):
    """Raised when acting on another user's riff, or voting on your own."""

    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(
            message=message,
            details="The acting user is not allowed to perform this action",
        )
        self.user_id = user_id


class NotFoundError(RiffException):
    """Raised when a riff or user does not exist."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            message=f"{kind.capitalize()} not found: {identifier}",
            details=f"The requested {kind} does not exist",
        )
        self.kind = kind
        self.identifier = identifier


class StorageError(RiffException):
    """Raised when the persistence layer fails.  Not retried by the engine."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Storage error during {operation}"
        if original_error:
            message += f": {original_error.__class__.__name__}"
        super().__init__(
            message=message,
            details="The riff store is temporarily unavailable",
        )
        self.operation = operation
        self.original_error = original_error
