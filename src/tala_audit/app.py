"""FastAPI application factory for Tala-Audit."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tala_audit.common.config import get_settings
from tala_audit.common.exceptions import (
    AuditWriteError,
    ChainConflictError,
    InvalidAuditEventError,
    TalaError,
)
from tala_audit.common.logging import setup_logging
from tala_audit.common.schemas import ErrorResponse, HealthResponse

_STATUS_BY_ERROR: list[tuple[type[TalaError], int]] = [
    (InvalidAuditEventError, 422),
    (ChainConflictError, 409),
    (AuditWriteError, 503),
]


def _status_for(exc: TalaError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from tala_audit.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TalaError)
    async def tala_error_handler(request: Request, exc: TalaError):
        body = ErrorResponse(error=type(exc).__name__, code=exc.code, detail=exc.message)
        return JSONResponse(status_code=_status_for(exc), content=body.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from tala_audit.audit.router import router as audit_router
    from tala_audit.users.router import router as users_router

    prefix = settings.api_prefix
    app.include_router(audit_router, prefix=prefix, tags=["audit"])
    app.include_router(users_router, prefix=prefix, tags=["users"])

    return app
