"""CORS middleware configuration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyquest.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the study app frontends to call the progression API.

    Browsers reject credentialed responses for a wildcard origin, so
    credentials are only allowed with an explicit origin list.
    """
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )
