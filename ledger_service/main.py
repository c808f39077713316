import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import Session

from .api.exceptions import register_exception_handlers
from .api.routes import auth_router, router as accounts_router, transaction_router
from .core.config import get_settings
from .core.db import get_engine, init_db
from .services import LedgerService

settings = get_settings()
logging.basicConfig(level=settings.log_level)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.system_api_token:
        with Session(get_engine()) as session:
            LedgerService(session).ensure_system_user(
                settings.system_user_name,
                settings.system_user_email,
                settings.system_api_token,
            )
    yield

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(transaction_router)
register_exception_handlers(app)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
