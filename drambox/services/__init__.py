"""Services for DramBox application."""

from drambox.services.exceptions import (
    ConcurrencyConflict,
    DramBoxError,
    Forbidden,
    IntegrityDefect,
    InvalidInput,
    InvalidState,
    NotFound,
    Unauthorized,
)

__all__ = [
    "ConcurrencyConflict",
    "DramBoxError",
    "Forbidden",
    "IntegrityDefect",
    "InvalidInput",
    "InvalidState",
    "NotFound",
    "Unauthorized",
]
