from .db import Account as AccountModel
from .db import IdempotencyRecord as IdempotencyRecordModel
from .db import LedgerTransaction as LedgerTransactionModel
from .db import User as UserModel
from .enums import OperationKind, Role, TransactionStatus
from .schemas import (
    AccountResponse,
    InitialFundsRequest,
    AuthTokenResponse,
    TransactionHistoryItem,
    TransactionListResponse,
    TransactionResponse,
    TransferRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)

__all__ = [
    "AccountResponse",
    "InitialFundsRequest",
    "AuthTokenResponse",
    "TransactionHistoryItem",
    "TransactionListResponse",
    "TransactionResponse",
    "TransferRequest",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "AccountModel",
    "IdempotencyRecordModel",
    "LedgerTransactionModel",
    "UserModel",
    "OperationKind",
    "Role",
    "TransactionStatus",
]
