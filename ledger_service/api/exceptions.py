from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import (
    EmailAlreadyRegisteredError,
    FailureKind,
    InvalidCredentialsError,
    LedgerError,
)


logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.FORBIDDEN: 403,
    FailureKind.INVALID_OPERATION: 400,
    FailureKind.INSUFFICIENT_FUNDS: 422,
    FailureKind.IDEMPOTENCY_CONFLICT: 409,
    FailureKind.TRANSIENT: 503,
}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        headers = {"Retry-After": "1"} if exc.kind is FailureKind.TRANSIENT else None
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind],
            content={"detail": str(exc), "kind": exc.kind.value, "retryable": exc.retryable},
            headers=headers,
        )

    @app.exception_handler(EmailAlreadyRegisteredError)
    async def email_registered_handler(
        request: Request, exc: EmailAlreadyRegisteredError
    ) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": str(exc)},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request.unhandled_error", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
