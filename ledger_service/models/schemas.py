from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, field_validator

from .enums import OperationKind, Role, TransactionStatus

IdempotencyKey = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
]

class UserRegister(BaseModel):
    name: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=r"^[a-zA-Z\s]+$",
        description="Display name, letters and spaces only",
    )
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("password")
    @classmethod
    def password_mixes_letters_and_digits(cls, value: str) -> str:
        if not any(ch.isdigit() for ch in value):
            raise ValueError("Password must contain at least one number")
        if not any(ch.isalpha() for ch in value):
            raise ValueError("Password must contain at least one letter")
        return value

class UserLogin(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=128)

class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    role: Role
    created_at: datetime

class AuthTokenResponse(BaseModel):
    user: UserResponse
    token: str = Field(..., description="Bearer token for the Authorization header")

class AccountResponse(BaseModel):
    id: UUID
    owner_id: Optional[UUID] = None
    created_at: datetime
    balance: int = Field(..., ge=0, description="Balance in minor units (e.g. cents)")
    version: int

class TransferRequest(BaseModel):
    from_account_id: UUID
    to_account_id: UUID
    amount: int = Field(..., ge=1, description="Amount in minor units (must be >= 1)")
    idempotency_key: IdempotencyKey

class InitialFundsRequest(BaseModel):
    to_account_id: UUID
    amount: int = Field(..., ge=1, description="Amount in minor units (must be >= 1)")
    idempotency_key: IdempotencyKey

class TransactionResponse(BaseModel):
    transaction_id: UUID
    status: TransactionStatus
    operation: OperationKind
    from_account_id: Optional[UUID] = None
    to_account_id: UUID
    amount: int
    created_at: datetime

class TransactionHistoryItem(TransactionResponse):
    failure_kind: Optional[str] = None
    failure_detail: Optional[str] = None

class TransactionListResponse(BaseModel):
    items: list[TransactionHistoryItem]
    next_cursor: Optional[UUID] = None
