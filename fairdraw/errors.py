"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error.

    ``code`` is the stable machine-readable kind; ``message`` is safe to show
    to callers and never carries storage internals.
    """

    code: str
    message: str
    status_code: int
    details: Any | None = None


class InvalidInputError(AppError):
    """Request values could not be parsed."""

    def __init__(self, message: str = "Invalid input", details: Any | None = None) -> None:
        super().__init__(code="invalid_input", message=message, status_code=400, details=details)


class RangeInvertedError(AppError):
    """Minimum is not strictly below maximum."""

    def __init__(self, message: str = "Min must be less than max.", details: Any | None = None) -> None:
        super().__init__(code="range_inverted", message=message, status_code=400, details=details)


class NegativeMinimumError(AppError):
    """Minimum is below zero."""

    def __init__(self, message: str = "Min must not be negative.", details: Any | None = None) -> None:
        super().__init__(code="negative_minimum", message=message, status_code=400, details=details)


class RangeTooLargeError(AppError):
    """Span between min and max exceeds the supported ceiling."""

    def __init__(self, message: str = "Range too large.", details: Any | None = None) -> None:
        super().__init__(code="range_too_large", message=message, status_code=400, details=details)


class KeyAllocationFailedError(AppError):
    """No free verification key was found within the retry budget."""

    def __init__(
        self,
        message: str = "Could not allocate a verification key, please retry later.",
        details: Any | None = None,
    ) -> None:
        super().__init__(code="key_allocation_failed", message=message, status_code=503, details=details)


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class StorageFailureError(AppError):
    """The persistence backend failed; the caller may retry later."""

    def __init__(
        self,
        message: str = "Storage is temporarily unavailable, please retry later.",
        details: Any | None = None,
    ) -> None:
        super().__init__(code="storage_failure", message=message, status_code=503, details=details)


class SecureRandomUnavailableError(AppError):
    """The operating system CSPRNG could not be used."""

    def __init__(
        self,
        message: str = "Secure random source unavailable.",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            code="secure_random_unavailable", message=message, status_code=500, details=details
        )


class DuplicateKeyError(Exception):
    """Raised by a draw store when an insert collides on the draw id."""

    def __init__(self, draw_id: str) -> None:
        super().__init__(f"Draw id already exists: {draw_id}")
        self.draw_id = draw_id
