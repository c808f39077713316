from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlmodel import Session

from ..core.errors import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidOperationError,
    SystemUserConflictError,
)
from ..core.security import (
    digest_token,
    generate_salt,
    hash_password,
    issue_token,
    verify_password,
)
from ..models import (
    AccountModel,
    AccountResponse,
    LedgerTransactionModel,
    AuthTokenResponse,
    Role,
    TransactionHistoryItem,
    TransactionListResponse,
    UserLogin,
    UserModel,
    UserRegister,
    UserResponse,
)
from .accounts import AccountStore
from .authorization import Principal, authorize_account_access, authorize_account_opening
from .repository import LedgerRepository


logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class LedgerService:
    """Registration, authentication lookups and account reads.

    Money movement lives in :class:`TransactionEngine`.
    """

    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
        accounts: Optional[AccountStore] = None,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)
        self.accounts = accounts or AccountStore(session)

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _user_to_response(self, user: UserModel) -> UserResponse:
        return UserResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )

    def _account_to_response(self, account: AccountModel) -> AccountResponse:
        return AccountResponse(
            id=account.id,
            owner_id=account.owner_id,
            created_at=account.created_at,
            balance=account.balance,
            version=account.version,
        )

    def _transaction_to_item(self, transaction: LedgerTransactionModel) -> TransactionHistoryItem:
        return TransactionHistoryItem(
            transaction_id=transaction.id,
            status=transaction.status,
            operation=transaction.operation,
            from_account_id=transaction.from_account_id,
            to_account_id=transaction.to_account_id,
            amount=transaction.amount,
            created_at=transaction.created_at,
            failure_kind=transaction.failure_kind,
            failure_detail=transaction.failure_detail,
        )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def _issue_token(self, user: UserModel) -> str:
        token = issue_token()
        user.token_digest = digest_token(token)
        self.session.add(user)
        return token

    def register_user(self, payload: UserRegister) -> AuthTokenResponse:
        email = _normalize_email(payload.email)
        if self.repository.get_user_by_email(email) is not None:
            raise EmailAlreadyRegisteredError(f"Email {email} is already registered")

        salt = generate_salt()
        user = self.repository.add_user(
            name=payload.name.strip(),
            email=email,
            role=Role.USER,
            token_digest=None,
            password_hash=hash_password(payload.password, salt),
            password_salt=salt,
        )
        token = self._issue_token(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("user.registered", extra={"user_id": str(user.id)})
        return AuthTokenResponse(user=self._user_to_response(user), token=token)

    def login(self, payload: UserLogin) -> AuthTokenResponse:
        email = _normalize_email(payload.email)
        user = self.repository.get_user_by_email(email)
        if (
            user is None
            or user.password_hash is None
            or user.password_salt is None
            or not verify_password(payload.password, user.password_salt, user.password_hash)
        ):
            logger.warning("user.login.rejected", extra={"email": email})
            raise InvalidCredentialsError("Invalid email or password")

        token = self._issue_token(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("user.login", extra={"user_id": str(user.id)})
        return AuthTokenResponse(user=self._user_to_response(user), token=token)

    def ensure_system_user(self, name: str, email: str, token: str) -> UserResponse:
        email = _normalize_email(email)
        user = self.repository.get_user_by_email(email)
        if user is None:
            user = self.repository.add_user(
                name=name,
                email=email,
                role=Role.SYSTEM,
                token_digest=digest_token(token),
            )
        elif Role(user.role) is not Role.SYSTEM:
            logger.error("user.system.conflict", extra={"user_id": str(user.id)})
            raise SystemUserConflictError(
                f"Email {email} belongs to a regular user and cannot be the system user"
            )
        else:
            user.token_digest = digest_token(token)
            self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("user.system.provisioned", extra={"user_id": str(user.id)})
        return self._user_to_response(user)

    def authenticate(self, token: str) -> Optional[Principal]:
        user = self.repository.get_user_by_token_digest(digest_token(token))
        if user is None:
            return None
        return Principal(id=user.id, role=Role(user.role))

    def revoke_token(self, principal: Principal) -> None:
        user = self.repository.get_user(principal.id)
        if user is None:
            return
        user.token_digest = None
        self.session.add(user)
        self.session.commit()
        logger.info("user.logout", extra={"user_id": str(principal.id)})

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    def create_account(self, principal: Principal) -> AccountResponse:
        authorize_account_opening(principal)
        account = self.accounts.add_account(principal.id)
        self.session.commit()
        self.session.refresh(account)
        logger.info(
            "account.created",
            extra={"account_id": str(account.id), "owner_id": str(principal.id)},
        )
        return self._account_to_response(account)

    def list_accounts(self, principal: Principal) -> list[AccountResponse]:
        return [
            self._account_to_response(account)
            for account in self.accounts.list_for_owner(principal.id)
        ]

    def get_account(self, account_id: UUID, principal: Principal) -> AccountResponse:
        account = self.accounts.get(account_id)
        authorize_account_access(principal, account)
        return self._account_to_response(account)

    def list_transactions(
        self,
        account_id: UUID,
        principal: Principal,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> TransactionListResponse:
        account = self.accounts.get(account_id)
        authorize_account_access(principal, account)

        before_id = None
        if cursor:
            try:
                before_id = UUID(cursor)
            except ValueError as exc:
                raise InvalidOperationError("Invalid cursor") from exc
            anchor = self.repository.get_transaction(before_id)
            if anchor is None or account_id not in (
                anchor.from_account_id,
                anchor.to_account_id,
            ):
                raise InvalidOperationError("Invalid cursor")

        # One extra row tells whether another page follows.
        transactions = self.repository.list_transactions(
            account_id, limit=limit + 1, before_id=before_id
        )
        page = transactions[:limit]
        next_cursor = page[-1].id if len(transactions) > limit else None

        items = [self._transaction_to_item(transaction) for transaction in page]
        return TransactionListResponse(items=items, next_cursor=next_cursor)
