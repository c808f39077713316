from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional
from uuid import UUID, uuid4
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from .enums import Role, TransactionStatus

class User(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str
    email: str = Field(unique=True, index=True)
    role: Role = Field(default=Role.USER)
    token_digest: Optional[str] = Field(default=None, unique=True, index=True)
    password_hash: Optional[str] = None
    password_salt: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

class Account(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    owner_id: Optional[UUID] = Field(default=None, foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    balance: int = Field(default=0, ge=0)
    version: int = Field(default=0)

# Account ids are not foreign keys: failed attempts against unknown
# accounts stay in the audit trail.
class LedgerTransaction(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    operation: str
    from_account_id: Optional[UUID] = Field(default=None, index=True)
    to_account_id: UUID = Field(index=True)
    amount: int
    idempotency_key: str = Field(max_length=100)
    status: TransactionStatus
    failure_kind: Optional[str] = None
    failure_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)

class IdempotencyRecord(SQLModel, table=True):
    operation: str = Field(primary_key=True)
    key: str = Field(primary_key=True, max_length=100)
    request_fingerprint: str
    status: TransactionStatus
    transaction_id: Optional[UUID] = Field(default=None, foreign_key="ledgertransaction.id")
    failure_kind: Optional[str] = None
    failure_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
