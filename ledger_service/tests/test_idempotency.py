from uuid import uuid4

import pytest

from ..core.errors import IdempotencyConflictError, InsufficientFundsError
from ..models import OperationKind, TransactionStatus
from ..services import IdempotencyLedger, LedgerRepository
from ..services.idempotency import ReservationStatus, request_fingerprint


def _transaction(session, key, status=TransactionStatus.COMPLETED):
    return LedgerRepository(session).add_transaction(
        operation=OperationKind.TRANSFER.value,
        from_account_id=uuid4(),
        to_account_id=uuid4(),
        amount=10,
        idempotency_key=key,
        status=status,
    )


def test_fingerprint_tracks_parameters() -> None:
    source, dest = uuid4(), uuid4()
    base = request_fingerprint((OperationKind.TRANSFER, source, dest, 10))

    assert base == request_fingerprint((OperationKind.TRANSFER, source, dest, 10))
    assert base != request_fingerprint((OperationKind.TRANSFER, source, dest, 11))
    assert base != request_fingerprint((OperationKind.TRANSFER, dest, source, 10))


def test_unknown_key_is_new(session) -> None:
    reservation = IdempotencyLedger(session).reserve_or_fetch(
        OperationKind.TRANSFER, "fresh", "abc"
    )
    assert reservation.status is ReservationStatus.NEW
    assert reservation.record is None


def test_recorded_key_is_a_duplicate(session) -> None:
    ledger = IdempotencyLedger(session)
    transaction = _transaction(session, "k1")
    transaction_id = transaction.id
    ledger.record(OperationKind.TRANSFER, "k1", "abc", transaction)
    session.commit()

    reservation = ledger.reserve_or_fetch(OperationKind.TRANSFER, "k1", "abc")
    assert reservation.status is ReservationStatus.DUPLICATE
    assert reservation.record.transaction_id == transaction_id
    assert reservation.record.status == TransactionStatus.COMPLETED

    other_namespace = ledger.reserve_or_fetch(OperationKind.ORIGINATE, "k1", "abc")
    assert other_namespace.status is ReservationStatus.NEW


def test_recorded_key_with_other_fingerprint_conflicts(session) -> None:
    ledger = IdempotencyLedger(session)
    ledger.record(OperationKind.TRANSFER, "k1", "abc", _transaction(session, "k1"))
    session.commit()

    with pytest.raises(IdempotencyConflictError):
        ledger.reserve_or_fetch(OperationKind.TRANSFER, "k1", "def")


def test_failure_outcome_is_stored(session) -> None:
    ledger = IdempotencyLedger(session)
    transaction = _transaction(session, "k2", TransactionStatus.FAILED)
    ledger.record(
        OperationKind.TRANSFER,
        "k2",
        "abc",
        transaction,
        InsufficientFundsError("Insufficient funds for transfer"),
    )
    session.commit()

    record = ledger.fetch(OperationKind.TRANSFER, "k2")
    assert record.status == TransactionStatus.FAILED
    assert record.failure_kind == "insufficient_funds"
    assert record.failure_detail == "Insufficient funds for transfer"
