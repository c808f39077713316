from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..services import LedgerRepository, LedgerService, Principal, TransactionEngine
from ..services.authorization import authorize_originate
from .config import get_settings
from .db import get_session

bearer_scheme = HTTPBearer(auto_error=False)

def get_ledger_service(session: Session = Depends(get_session)) -> LedgerService:
    repository = LedgerRepository(session)
    return LedgerService(session, repository)

def get_transaction_engine(session: Session = Depends(get_session)) -> TransactionEngine:
    return TransactionEngine(session, get_settings())

def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    service: LedgerService = Depends(get_ledger_service),
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    principal = service.authenticate(credentials.credentials)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal

def get_system_principal(principal: Principal = Depends(get_current_principal)) -> Principal:
    # Resolved before the request body, so a user is refused whatever it sent.
    authorize_originate(principal)
    return principal
