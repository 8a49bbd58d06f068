"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from food_journal.api.journal import router as journal_router
from food_journal.api.users import router as users_router
from food_journal.app_logging import configure_logging
from food_journal.containers import AppContainer
from food_journal.domain.errors import (
    Conflict,
    CorruptRecord,
    InvalidInput,
    NotFound,
    StorageUnavailable,
    StoreError,
)

_STATUS_BY_ERROR: dict[type[StoreError], int] = {
    NotFound: HTTPStatus.PRECONDITION_FAILED,
    InvalidInput: HTTPStatus.UNPROCESSABLE_ENTITY,
    Conflict: HTTPStatus.CONFLICT,
    CorruptRecord: HTTPStatus.INTERNAL_SERVER_ERROR,
    StorageUnavailable: HTTPStatus.SERVICE_UNAVAILABLE,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(users_router)
    app.include_router(journal_router)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Map storage failures to status codes."""
        status_code = status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Storage failure on %s %s",
                request.method,
                request.url.path,
                exc_info=exc,
            )
        else:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/", response_class=PlainTextResponse)
    async def home() -> str:
        """Landing route."""
        return "home"

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def status_for(exc: StoreError) -> int:
    """Return the HTTP status for a storage error."""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR
