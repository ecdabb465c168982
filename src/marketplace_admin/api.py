"""FastAPI application for the marketplace settlement back-office."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import limiter
from .database import DatabaseManager
from .exceptions import AdminError
from .reconciliation.api import router as reconciliation_router
from .settlements.api import router as settlements_router

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Map every failure to the {"success": false, "error": ...} envelope."""

    @app.exception_handler(AdminError)
    async def admin_error_handler(request: Request, exc: AdminError):
        if exc.http_status >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning(f"Validation error on {request.url.path}: {errors}")
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("query", "body"))
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": f"{field}: {message}" if field else message},
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Server error"},
        )


def create_app(db_manager: Optional[DatabaseManager] = None) -> FastAPI:
    """Build the application.

    Args:
        db_manager: Database handle to use. When omitted, one is built from
            DATABASE_URL at startup and disposed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = db_manager or DatabaseManager()
        if db_manager is None:
            await manager.initialize()
        app.state.db_manager = manager
        try:
            yield
        finally:
            if db_manager is None:
                await manager.shutdown()

    app = FastAPI(title="Marketplace Admin - Settlements API", lifespan=lifespan)
    app.state.limiter = limiter
    if db_manager is not None:
        app.state.db_manager = db_manager
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    # Registered before the settlements router so /cumulative-entries is not
    # captured by /{settlement_id}.
    app.include_router(reconciliation_router)
    app.include_router(settlements_router)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()
