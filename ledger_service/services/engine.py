from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..core.config import Settings, get_settings
from ..core.errors import (
    IdempotencyConflictError,
    InvalidOperationError,
    LedgerError,
    StaleAccountError,
    TransientError,
    error_for_kind,
)
from ..models import (
    IdempotencyRecordModel,
    InitialFundsRequest,
    LedgerTransactionModel,
    OperationKind,
    TransactionResponse,
    TransactionStatus,
    TransferRequest,
)
from .accounts import AccountStore
from .authorization import (
    Principal,
    authorize_originate,
    authorize_source_account,
    authorize_transfer,
)
from .idempotency import IdempotencyLedger, ReservationStatus, request_fingerprint
from .repository import LedgerRepository


logger = logging.getLogger(__name__)


def transaction_to_response(transaction: LedgerTransactionModel) -> TransactionResponse:
    return TransactionResponse(
        transaction_id=transaction.id,
        status=transaction.status,
        operation=OperationKind(transaction.operation),
        from_account_id=transaction.from_account_id,
        to_account_id=transaction.to_account_id,
        amount=transaction.amount,
        created_at=transaction.created_at,
    )


class TransactionEngine:
    """Executes transfers and initial-funds credits as single units of work.

    Each call runs: authorize, look up the idempotency key, mutate balances,
    then write the transaction row and idempotency record before one commit.
    Business failures are committed as ``failed`` outcomes so a retry with
    the same key gets the same answer. Version conflicts are retried up to
    ``max_commit_attempts`` and then surface as ``TransientError`` with
    nothing persisted.
    """

    def __init__(
        self,
        session: Session,
        settings: Optional[Settings] = None,
        accounts: Optional[AccountStore] = None,
        idempotency: Optional[IdempotencyLedger] = None,
        repository: Optional[LedgerRepository] = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.accounts = accounts or AccountStore(session)
        self.idempotency = idempotency or IdempotencyLedger(session)
        self.repository = repository or LedgerRepository(session)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def transfer(self, payload: TransferRequest, principal: Principal) -> TransactionResponse:
        authorize_transfer(principal)
        if payload.amount <= 0:
            raise InvalidOperationError("Amount must be positive")
        if payload.from_account_id == payload.to_account_id:
            raise InvalidOperationError("Cannot transfer to the same account")

        try:
            source = self.accounts.get(payload.from_account_id)
            authorize_source_account(principal, source)
        except LedgerError:
            self.session.rollback()
            raise

        fingerprint = request_fingerprint(
            (
                OperationKind.TRANSFER,
                payload.from_account_id,
                payload.to_account_id,
                payload.amount,
            )
        )

        def apply() -> None:
            source = self.accounts.get(payload.from_account_id)
            dest = self.accounts.get(payload.to_account_id)
            # Fixed write order keeps row locks from deadlocking on databases
            # that take them.
            for account in sorted((source, dest), key=lambda acc: str(acc.id)):
                if account is source:
                    self.accounts.debit(source, payload.amount)
                else:
                    self.accounts.credit(dest, payload.amount)

        return self._execute(
            OperationKind.TRANSFER,
            payload.idempotency_key,
            fingerprint,
            apply,
            from_account_id=payload.from_account_id,
            to_account_id=payload.to_account_id,
            amount=payload.amount,
        )

    def originate(
        self, payload: InitialFundsRequest, principal: Principal
    ) -> TransactionResponse:
        authorize_originate(principal)
        if payload.amount <= 0:
            raise InvalidOperationError("Amount must be positive")

        fingerprint = request_fingerprint(
            (OperationKind.ORIGINATE, payload.to_account_id, payload.amount)
        )

        def apply() -> None:
            dest = self.accounts.get(payload.to_account_id)
            self.accounts.credit(dest, payload.amount)

        return self._execute(
            OperationKind.ORIGINATE,
            payload.idempotency_key,
            fingerprint,
            apply,
            from_account_id=None,
            to_account_id=payload.to_account_id,
            amount=payload.amount,
        )

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------
    def _execute(
        self,
        operation: OperationKind,
        idempotency_key: str,
        fingerprint: str,
        apply: Callable[[], None],
        *,
        from_account_id: Optional[UUID],
        to_account_id: UUID,
        amount: int,
    ) -> TransactionResponse:
        log_context = {
            "operation": operation.value,
            "idempotency_key": idempotency_key,
            "from_account_id": str(from_account_id) if from_account_id else None,
            "to_account_id": str(to_account_id),
            "amount": amount,
        }
        attempts = self.settings.max_commit_attempts

        for attempt in range(1, attempts + 1):
            try:
                reservation = self.idempotency.reserve_or_fetch(
                    operation, idempotency_key, fingerprint
                )
            except IdempotencyConflictError:
                self.session.rollback()
                raise
            if reservation.status is ReservationStatus.DUPLICATE:
                logger.info(f"idempotent.{operation.value}.hit", extra=log_context)
                return self._replay(reservation.record)

            try:
                apply()
                transaction = self.repository.add_transaction(
                    operation=operation.value,
                    from_account_id=from_account_id,
                    to_account_id=to_account_id,
                    amount=amount,
                    idempotency_key=idempotency_key,
                    status=TransactionStatus.COMPLETED,
                )
                self.idempotency.record(operation, idempotency_key, fingerprint, transaction)
                self.session.commit()
            except StaleAccountError:
                self.session.rollback()
                logger.warning(
                    f"transaction.{operation.value}.conflict",
                    extra={**log_context, "attempt": attempt},
                )
                if attempt < attempts:
                    time.sleep(self.settings.retry_backoff_seconds * attempt)
                continue
            except IntegrityError:
                self.session.rollback()
                # Another request committed this key first.
                record = self.idempotency.fetch(operation, idempotency_key)
                if record is None:
                    raise
                logger.info(f"idempotent.{operation.value}.race", extra=log_context)
                return self._replay_checked(record, fingerprint)
            except LedgerError as exc:
                self.session.rollback()
                return self._record_failure(
                    operation,
                    idempotency_key,
                    fingerprint,
                    exc,
                    from_account_id=from_account_id,
                    to_account_id=to_account_id,
                    amount=amount,
                )
            except Exception:
                self.session.rollback()
                logger.exception(f"transaction.{operation.value}.error", extra=log_context)
                raise

            self.session.refresh(transaction)
            response = transaction_to_response(transaction)
            self.session.rollback()
            logger.info(
                f"transaction.{operation.value}.completed",
                extra={**log_context, "transaction_id": str(response.transaction_id)},
            )
            return response

        logger.warning(f"transaction.{operation.value}.exhausted", extra=log_context)
        raise TransientError(
            f"Account contention persisted after {attempts} attempts; retry the request"
        )

    def _record_failure(
        self,
        operation: OperationKind,
        idempotency_key: str,
        fingerprint: str,
        failure: LedgerError,
        *,
        from_account_id: Optional[UUID],
        to_account_id: UUID,
        amount: int,
    ) -> TransactionResponse:
        try:
            transaction = self.repository.add_transaction(
                operation=operation.value,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                idempotency_key=idempotency_key,
                status=TransactionStatus.FAILED,
                failure_kind=failure.kind.value,
                failure_detail=str(failure),
            )
            self.idempotency.record(
                operation, idempotency_key, fingerprint, transaction, failure
            )
            transaction_id = transaction.id
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            record = self.idempotency.fetch(operation, idempotency_key)
            if record is None:
                raise
            return self._replay_checked(record, fingerprint)

        logger.info(
            f"transaction.{operation.value}.failed",
            extra={
                "idempotency_key": idempotency_key,
                "failure_kind": failure.kind.value,
                "transaction_id": str(transaction_id),
            },
        )
        raise failure

    def _replay_checked(
        self, record: IdempotencyRecordModel, fingerprint: str
    ) -> TransactionResponse:
        if record.request_fingerprint != fingerprint:
            self.session.rollback()
            raise IdempotencyConflictError(
                "Idempotency key was previously used with different parameters"
            )
        return self._replay(record)

    def _replay(self, record: Optional[IdempotencyRecordModel]) -> TransactionResponse:
        if record is None:
            raise RuntimeError("Replay requested without an idempotency record")

        if record.status == TransactionStatus.FAILED:
            failure = error_for_kind(record.failure_kind, record.failure_detail or "")
            self.session.rollback()
            raise failure

        transaction = self.repository.get_transaction(record.transaction_id)
        if transaction is None:
            raise RuntimeError(
                f"Idempotency record {record.operation}/{record.key} has no transaction"
            )
        response = transaction_to_response(transaction)
        self.session.rollback()
        return response
