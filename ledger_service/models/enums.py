from enum import Enum


class Role(str, Enum):
    USER = "user"
    SYSTEM = "system"


class OperationKind(str, Enum):
    TRANSFER = "transfer"
    ORIGINATE = "originate"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
