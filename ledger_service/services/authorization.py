from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from ..core.errors import ForbiddenError
from ..models import AccountModel, Role


@dataclass(frozen=True)
class Principal:
    """An authenticated caller as handed over by the web layer."""

    id: UUID
    role: Role


def authorize_transfer(principal: Principal) -> None:
    if principal.role is not Role.USER:
        raise ForbiddenError("Only user principals can transfer funds")


def authorize_source_account(principal: Principal, account: AccountModel) -> None:
    if account.owner_id != principal.id:
        raise ForbiddenError(f"Account {account.id} does not belong to the caller")


def authorize_originate(principal: Principal) -> None:
    if principal.role is not Role.SYSTEM:
        raise ForbiddenError("Only the system principal can originate funds")


def authorize_account_opening(principal: Principal) -> None:
    if principal.role is not Role.USER:
        raise ForbiddenError("Only user principals can open accounts")


def authorize_account_access(principal: Principal, account: AccountModel) -> None:
    if principal.role is Role.SYSTEM:
        return
    if account.owner_id != principal.id:
        raise ForbiddenError(f"Account {account.id} does not belong to the caller")
