from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import Session, col, select

from ..core.errors import AccountNotFoundError, InsufficientFundsError, StaleAccountError
from ..models import AccountModel


class AccountStore:
    """Account records and their balance read-modify-write.

    Balance changes are conditional updates keyed on the version that was
    read, so a concurrent writer turns into a ``StaleAccountError`` instead
    of a lost update. Debits also carry the ``balance >= amount`` guard in
    the same statement, so no interleaving can drive a balance negative.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_account(self, owner_id: Optional[UUID]) -> AccountModel:
        account = AccountModel(owner_id=owner_id)
        self.session.add(account)
        self.session.flush()
        self.session.refresh(account)
        return account

    def find(self, account_id: UUID) -> Optional[AccountModel]:
        return self.session.get(AccountModel, account_id, populate_existing=True)

    def get(self, account_id: UUID) -> AccountModel:
        account = self.find(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def list_for_owner(self, owner_id: UUID) -> list[AccountModel]:
        stmt = (
            select(AccountModel)
            .where(AccountModel.owner_id == owner_id)
            .order_by(col(AccountModel.created_at))
        )
        return list(self.session.exec(stmt))

    def debit(self, account: AccountModel, amount: int) -> None:
        expected_version = account.version
        stmt = (
            update(AccountModel)
            .where(
                col(AccountModel.id) == account.id,
                col(AccountModel.version) == expected_version,
                col(AccountModel.balance) >= amount,
            )
            .values(
                balance=col(AccountModel.balance) - amount,
                version=col(AccountModel.version) + 1,
            )
        )
        if self.session.connection().execute(stmt).rowcount == 1:
            return

        # get() reloads the identity-mapped instance in place.
        current = self.get(account.id)
        if current.version != expected_version:
            raise StaleAccountError(f"Account {account.id} changed during debit")
        raise InsufficientFundsError("Insufficient funds for transfer")

    def credit(self, account: AccountModel, amount: int) -> None:
        stmt = (
            update(AccountModel)
            .where(
                col(AccountModel.id) == account.id,
                col(AccountModel.version) == account.version,
            )
            .values(
                balance=col(AccountModel.balance) + amount,
                version=col(AccountModel.version) + 1,
            )
        )
        if self.session.connection().execute(stmt).rowcount != 1:
            raise StaleAccountError(f"Account {account.id} changed during credit")
