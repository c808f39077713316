from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple
from uuid import UUID

from sqlmodel import Session

from ..core.errors import IdempotencyConflictError, LedgerError
from ..models import IdempotencyRecordModel, LedgerTransactionModel, OperationKind, TransactionStatus


def _json_default(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def request_fingerprint(signature: Tuple[Any, ...]) -> str:
    encoded = json.dumps(signature, default=_json_default, sort_keys=True)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class ReservationStatus(str, Enum):
    NEW = "new"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class Reservation:
    status: ReservationStatus
    record: Optional[IdempotencyRecordModel] = None


class IdempotencyLedger:
    """Maps (operation, idempotency key) to the first outcome for that key.

    A record is only ever inserted in the same database transaction as the
    effect it describes. The composite primary key makes that insert the
    reservation: of two concurrent requests with one key, only one commits.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def fetch(self, operation: OperationKind, key: str) -> Optional[IdempotencyRecordModel]:
        return self.session.get(
            IdempotencyRecordModel, (operation.value, key), populate_existing=True
        )

    def reserve_or_fetch(
        self, operation: OperationKind, key: str, fingerprint: str
    ) -> Reservation:
        record = self.fetch(operation, key)
        if record is None:
            return Reservation(ReservationStatus.NEW)

        if record.request_fingerprint != fingerprint:
            raise IdempotencyConflictError(
                "Idempotency key was previously used with different parameters"
            )
        return Reservation(ReservationStatus.DUPLICATE, record)

    def record(
        self,
        operation: OperationKind,
        key: str,
        fingerprint: str,
        transaction: Optional[LedgerTransactionModel],
        failure: Optional[LedgerError] = None,
    ) -> IdempotencyRecordModel:
        entry = IdempotencyRecordModel(
            operation=operation.value,
            key=key,
            request_fingerprint=fingerprint,
            status=TransactionStatus.FAILED if failure else TransactionStatus.COMPLETED,
            transaction_id=transaction.id if transaction is not None else None,
            failure_kind=failure.kind.value if failure else None,
            failure_detail=str(failure) if failure else None,
        )
        self.session.add(entry)
        self.session.flush()
        return entry
