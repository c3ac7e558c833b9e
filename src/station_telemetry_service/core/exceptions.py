"""Domain/service exceptions."""
from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base error for service layer."""


class RepositoryError(ServiceError):
    """Raised when the telemetry store is unreachable or rejects an operation."""


class NotFoundError(ServiceError):
    """Raised when a referenced catalog entity does not exist."""


class InvalidSubmissionError(ServiceError):
    """Raised when a request cannot be accepted as sent.

    ``detail`` is merged into the structured error payload returned to the caller.
    """

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
