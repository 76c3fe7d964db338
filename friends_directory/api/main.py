"""FastAPI application entrypoint for the Friends directory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from friends_directory.api.middleware.headers import DefaultHeadersMiddleware
from friends_directory.api.middleware.logging import LoggingMiddleware
from friends_directory.api.routes import admin, friendws, people
from friends_directory.core.config import Settings, settings
from friends_directory.core.database import database_manager
from friends_directory.core.exceptions import ApplicationError, ValidationFailure
from friends_directory.core.observability import setup_tracing
from friends_directory.directory.bootstrap import build_service, prepare_store
from friends_directory.store import GraphStore

logger = logging.getLogger(__name__)


def _error_response(request: Request, exc: ApplicationError) -> Response:
    if "application/json" in request.headers.get("accept", ""):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def create_app(store: Optional[GraphStore] = None, config: Settings = settings) -> FastAPI:
    """Build the application; ``store`` overrides the configured backend."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the store and build the name index before serving; close on shutdown.

        A shared store is prepared once by the CLI before the workers start. A
        process-local store is prepared here.
        """

        active_store = await database_manager.initialize(store)
        if not active_store.shared:
            await prepare_store(active_store, config)
        app.state.service = await build_service(active_store)
        try:
            yield
        finally:
            await database_manager.close()

    app = FastAPI(
        title=config.API_TITLE,
        version=config.API_VERSION,
        debug=config.DEBUG,
        lifespan=lifespan,
    )

    setup_tracing(app, config)

    app.add_middleware(DefaultHeadersMiddleware, headers={"Server": config.SERVER_HEADER})
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=config.GZIP_MINIMUM_SIZE)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(people.router)
    app.include_router(friendws.router)
    app.include_router(admin.router)

    @app.exception_handler(ApplicationError)
    async def handle_application_error(request: Request, exc: ApplicationError) -> Response:
        """Render application errors as plain text, or JSON when the client asks for it."""

        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message, exc_info=exc)
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> Response:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        return _error_response(request, ValidationFailure(f"Invalid request: {fields}"))

    return app


app = create_app()
