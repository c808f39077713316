from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlmodel import Session, col, select

from ..models import LedgerTransactionModel, Role, TransactionStatus, UserModel


class LedgerRepository:
    """Thin data access layer around the SQLModel session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Users --------------------------------------------------------------
    def add_user(
        self,
        *,
        name: str,
        email: str,
        role: Role,
        token_digest: Optional[str],
        password_hash: Optional[str] = None,
        password_salt: Optional[str] = None,
    ) -> UserModel:
        user = UserModel(
            name=name,
            email=email,
            role=role,
            token_digest=token_digest,
            password_hash=password_hash,
            password_salt=password_salt,
        )
        self.session.add(user)
        self.session.flush()
        self.session.refresh(user)
        return user

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        stmt = select(UserModel).where(UserModel.email == email)
        return self.session.exec(stmt).first()

    def get_user_by_token_digest(self, token_digest: str) -> Optional[UserModel]:
        stmt = select(UserModel).where(UserModel.token_digest == token_digest)
        return self.session.exec(stmt).first()

    def get_user(self, user_id: UUID) -> Optional[UserModel]:
        return self.session.get(UserModel, user_id)

    # Transactions -------------------------------------------------------
    def add_transaction(
        self,
        *,
        operation: str,
        from_account_id: Optional[UUID],
        to_account_id: UUID,
        amount: int,
        idempotency_key: str,
        status: TransactionStatus,
        failure_kind: Optional[str] = None,
        failure_detail: Optional[str] = None,
    ) -> LedgerTransactionModel:
        transaction = LedgerTransactionModel(
            operation=operation,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            idempotency_key=idempotency_key,
            status=status,
            failure_kind=failure_kind,
            failure_detail=failure_detail,
        )
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def get_transaction(self, transaction_id: UUID) -> Optional[LedgerTransactionModel]:
        return self.session.get(LedgerTransactionModel, transaction_id)

    def list_transactions(
        self,
        account_id: UUID,
        limit: Optional[int] = None,
        before_id: Optional[UUID] = None,
    ) -> list[LedgerTransactionModel]:
        """Newest-first history for an account.

        ``before_id`` is a keyset cursor: only rows that sort after it in
        ``(created_at, id)`` descending order are returned.
        """
        stmt = select(LedgerTransactionModel).where(
            or_(
                LedgerTransactionModel.from_account_id == account_id,
                LedgerTransactionModel.to_account_id == account_id,
            )
        )
        if before_id is not None:
            anchor = (
                select(LedgerTransactionModel.created_at)
                .where(LedgerTransactionModel.id == before_id)
                .scalar_subquery()
            )
            stmt = stmt.where(
                or_(
                    col(LedgerTransactionModel.created_at) < anchor,
                    and_(
                        col(LedgerTransactionModel.created_at) == anchor,
                        col(LedgerTransactionModel.id) < before_id,
                    ),
                )
            )
        stmt = stmt.order_by(
            col(LedgerTransactionModel.created_at).desc(),
            col(LedgerTransactionModel.id).desc(),
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.exec(stmt))
