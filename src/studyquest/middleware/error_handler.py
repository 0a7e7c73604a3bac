"""Global error handlers: consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studyquest.progression.errors import InvalidCounterState, UserNotFound

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(UserNotFound)
    async def user_not_found_handler(_request: Request, exc: UserNotFound) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": f"User {exc.user_id} not found"},
        )

    @app.exception_handler(InvalidCounterState)
    async def invalid_counter_state_handler(request: Request, exc: InvalidCounterState) -> JSONResponse:
        """A stored snapshot failed validation; nothing was written."""
        logger.warning("invalid_counter_state", path=request.url.path, reason=exc.reason)
        return JSONResponse(
            status_code=422,
            content={"detail": f"Invalid counter state: {exc.reason}"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always returns JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
