"""
FastAPI application entry point for the account portal.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.config import Settings, get_settings
from portal.routes import router

logger = logging.getLogger(__name__)


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application. Passing ``settings`` overrides the environment
    for every dependency (tests and embedding).
    """
    app = FastAPI(title="Account Portal", version="0.1.0")
    if settings is None:
        settings = get_settings()
    else:
        app.dependency_overrides[get_settings] = lambda: settings

    settings.validate_for_startup()

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
        )

    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(router)
    return app
