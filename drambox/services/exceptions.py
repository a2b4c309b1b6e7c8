"""Domain-specific exceptions for DramBox services.

Each error carries a short ``reason`` code that is safe to show to clients.
The API maps them to HTTP status codes in one place (see ``drambox.main``).
"""


class DramBoxError(Exception):
    """Base exception for DramBox services."""

    reason = "error"
    status_code = 400

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class Unauthorized(DramBoxError):
    """Raised when the caller identity is missing or invalid."""

    reason = "unauthorized"
    status_code = 401


class Forbidden(DramBoxError):
    """Raised when a resource belongs to another user."""

    reason = "forbidden"
    status_code = 403


class NotFound(DramBoxError):
    """Raised when a referenced entity does not exist."""

    reason = "not_found"
    status_code = 404


class InvalidState(DramBoxError):
    """Raised when an operation is not allowed in the entity's current state."""

    reason = "invalid_state"
    status_code = 400


class InvalidInput(DramBoxError):
    """Raised when a value is outside its domain range."""

    reason = "invalid_input"
    status_code = 422


class ConcurrencyConflict(DramBoxError):
    """Raised when optimistic-concurrency retries are exhausted."""

    reason = "conflict"
    status_code = 409


class IntegrityDefect(DramBoxError):
    """Raised when an internal invariant is violated.

    Logged with full context server-side; clients only see a generic failure.
    """

    reason = "internal_error"
    status_code = 500
