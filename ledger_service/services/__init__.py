from .accounts import AccountStore
from .authorization import Principal
from .engine import TransactionEngine
from .idempotency import IdempotencyLedger
from .ledger import LedgerService
from .repository import LedgerRepository

__all__ = [
    "AccountStore",
    "IdempotencyLedger",
    "LedgerRepository",
    "LedgerService",
    "Principal",
    "TransactionEngine",
]
