from __future__ import annotations

from enum import Enum
from typing import ClassVar


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_OPERATION = "invalid_operation"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    IDEMPOTENCY_CONFLICT = "idempotency_conflict"
    TRANSIENT = "transient"


class LedgerError(Exception):
    """Base class for the failures the transaction core reports to callers."""

    kind: ClassVar[FailureKind]
    retryable: ClassVar[bool] = True


class AccountNotFoundError(LedgerError):
    """Raised when an account id is missing from the store."""

    kind = FailureKind.NOT_FOUND


class ForbiddenError(LedgerError):
    """Raised when the principal may not perform the operation."""

    kind = FailureKind.FORBIDDEN
    retryable = False


class InvalidOperationError(LedgerError):
    """Raised for well-formed requests that break a domain rule."""

    kind = FailureKind.INVALID_OPERATION
    retryable = False


class InsufficientFundsError(LedgerError):
    """Raised when a transfer would drop balance below zero."""

    kind = FailureKind.INSUFFICIENT_FUNDS


class IdempotencyConflictError(LedgerError):
    """Raised when the same idempotency key is reused with different input."""

    kind = FailureKind.IDEMPOTENCY_CONFLICT


class TransientError(LedgerError):
    """Raised when account contention outlasts the retry budget."""

    kind = FailureKind.TRANSIENT


class StaleAccountError(Exception):
    """An account changed between read and conditional write."""


class EmailAlreadyRegisteredError(Exception):
    """Raised when registering an email that already has a user."""


class InvalidCredentialsError(Exception):
    """Raised when a login email and password do not match a user."""


class SystemUserConflictError(Exception):
    """Raised when the configured system email belongs to a regular user."""


_ERRORS_BY_KIND: dict[FailureKind, type[LedgerError]] = {
    cls.kind: cls
    for cls in (
        AccountNotFoundError,
        ForbiddenError,
        InvalidOperationError,
        InsufficientFundsError,
        IdempotencyConflictError,
        TransientError,
    )
}


def error_for_kind(kind: FailureKind | str, detail: str) -> LedgerError:
    return _ERRORS_BY_KIND[FailureKind(kind)](detail)
