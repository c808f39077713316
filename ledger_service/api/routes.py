from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..core.dependencies import (
    get_current_principal,
    get_ledger_service,
    get_system_principal,
    get_transaction_engine,
)
from ..models import (
    AccountResponse,
    InitialFundsRequest,
    AuthTokenResponse,
    TransactionListResponse,
    TransactionResponse,
    TransferRequest,
    UserLogin,
    UserRegister,
)
from ..services import LedgerService, Principal, TransactionEngine


auth_router = APIRouter(prefix="/auth", tags=["auth"])

@auth_router.post(
    "/register", response_model=AuthTokenResponse, status_code=status.HTTP_201_CREATED
)
def register(
    payload: UserRegister,
    service: LedgerService = Depends(get_ledger_service),
) -> AuthTokenResponse:
    return service.register_user(payload)

@auth_router.post("/login", response_model=AuthTokenResponse)
def login(
    payload: UserLogin,
    service: LedgerService = Depends(get_ledger_service),
) -> AuthTokenResponse:
    return service.login(payload)

@auth_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> Response:
    service.revoke_token(principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    return service.create_account(principal)

@router.get("", response_model=list[AccountResponse])
def list_accounts(
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> list[AccountResponse]:
    return service.list_accounts(principal)

@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    return service.get_account(account_id, principal)

@router.get("/{account_id}/transactions", response_model=TransactionListResponse)
def list_transactions(
    account_id: UUID,
    limit: int = Query(default=50, ge=1, le=200),
    cursor: str | None = None,
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    return service.list_transactions(account_id, principal, limit=limit, cursor=cursor)

transaction_router = APIRouter(prefix="/transactions", tags=["transactions"])

@transaction_router.post(
    "", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED
)
def create_transaction(
    payload: TransferRequest,
    principal: Principal = Depends(get_current_principal),
    engine: TransactionEngine = Depends(get_transaction_engine),
) -> TransactionResponse:
    return engine.transfer(payload, principal)

@transaction_router.post(
    "/system/initial-funds",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_initial_funds_transaction(
    payload: InitialFundsRequest,
    principal: Principal = Depends(get_system_principal),
    engine: TransactionEngine = Depends(get_transaction_engine),
) -> TransactionResponse:
    return engine.originate(payload, principal)

__all__ = ["auth_router", "router", "transaction_router"]
