# src/duty_admin/utils/errors.py
from __future__ import annotations


class DomainError(Exception):
    """
    Declined operation with a human-readable message.
    Raised by crud/scope code, turned into JSON by the exception handler.
    """

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(DomainError):
    status_code = 422


class Locked(DomainError):
    status_code = 423


class Conflict(DomainError):
    status_code = 409


class ScopeMismatch(DomainError):
    status_code = 403


class NotFound(DomainError):
    status_code = 404
