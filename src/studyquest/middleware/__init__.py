"""Middleware registration."""

from fastapi import FastAPI

from studyquest.config import Settings
from studyquest.middleware.cors import setup_cors
from studyquest.middleware.error_handler import setup_error_handlers
from studyquest.middleware.logging import setup_logging
from studyquest.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    FastAPI/Starlette executes middleware in reverse-add order (last added = outermost).
    CORS is added last so it also wraps error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
