from uuid import UUID

from sqlmodel import Session, select

from ..models import AccountModel, Role, UserModel
from ..services import Principal


def add_principal(session: Session, name: str, role: Role = Role.USER) -> Principal:
    user = UserModel(name=name, email=f"{name.lower()}@example.com", role=role)
    user_id = user.id
    session.add(user)
    session.commit()
    return Principal(id=user_id, role=role)


def add_account(session: Session, owner: Principal | None, balance: int = 0) -> UUID:
    account = AccountModel(owner_id=owner.id if owner else None, balance=balance)
    account_id = account.id
    session.add(account)
    session.commit()
    return account_id


def balance_of(session: Session, account_id: UUID) -> int:
    account = session.get(AccountModel, account_id, populate_existing=True)
    balance = account.balance
    session.rollback()
    return balance


def count_rows(session: Session, model) -> int:
    rows = session.exec(select(model)).all()
    session.rollback()
    return len(rows)
