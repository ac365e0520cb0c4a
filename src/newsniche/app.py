"""Web entry point — FastAPI app factory and lifespan wiring."""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from newsniche.config import load_settings
from newsniche.errors import AppError, ValidationError
from newsniche.health import check_emulators
from newsniche.logging import configure_logging
from newsniche.pipeline.maintenance import MaintenanceLoop
from newsniche.routes import health, maintenance, posts
from newsniche.routes.submissions import guest_router, sponsored_router
from newsniche.startup import init_database, init_workflow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from newsniche.config import Settings

logger = logging.getLogger(__name__)


def _resolve_secret(settings: Settings) -> str:
    """Return the signing secret, minting a throwaway one only in development."""
    if settings.app.secret_key:
        return settings.app.secret_key
    if not settings.app.is_development:
        msg = "SECRET_KEY must be set outside development"
        raise RuntimeError(msg)
    logger.warning(
        "SECRET_KEY is not set — using a temporary key; sessions and edit links"
        " will not survive a restart"
    )
    return secrets.token_urlsafe(32)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error(request: Request, exc: AppError) -> JSONResponse:
        body: dict[str, object] = {"success": False, "message": exc.message}
        if isinstance(exc, ValidationError) and exc.errors:
            body["errors"] = exc.errors
        if exc.status_code >= 500:
            logger.error("Request failed — path=%s error=%s", request.url.path, exc.message)
        return JSONResponse(body, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return JSONResponse(
            {"success": False, "message": "Validation failed", "errors": errors},
            status_code=400,
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error — path=%s", request.url.path)
        return JSONResponse(
            {"success": False, "message": "Internal server error"}, status_code=500
        )


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = load_settings()
    secret_key = _resolve_secret(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.app.log_level, log_file="web.log")
        logger.info("Web app starting — env=%s", settings.app.env)

        if settings.app.is_development and not await check_emulators(settings):
            msg = "Local dependencies are not reachable"
            raise RuntimeError(msg)

        cosmos = await init_database(settings)
        workflow, notifier = init_workflow(settings, cosmos, secret_key=secret_key)

        app.state.settings = settings
        app.state.cosmos = cosmos
        app.state.workflow = workflow
        app.state.notifier = notifier

        maintenance_loop = None
        if settings.app.maintenance_interval_seconds > 0:
            maintenance_loop = MaintenanceLoop(
                workflow, settings.app.maintenance_interval_seconds
            )
            await maintenance_loop.start()
        app.state.maintenance = maintenance_loop

        try:
            yield
        finally:
            logger.info("Web app shutting down")
            if maintenance_loop is not None:
                await maintenance_loop.stop()
            await notifier.drain()
            await cosmos.close()
            logger.info("Web app shutdown complete")

    app = FastAPI(title="News and Niche Submissions", lifespan=lifespan)
    app.add_middleware(
        SessionMiddleware,
        secret_key=secret_key,
        https_only=not settings.app.is_development,
    )
    _install_error_handlers(app)

    app.include_router(health.router)
    app.include_router(guest_router)
    app.include_router(sponsored_router)
    app.include_router(maintenance.router)
    app.include_router(posts.router)
    return app


def main() -> None:
    """Entry point for the web process."""
    settings = load_settings()
    uvicorn.run(
        "newsniche.app:create_app",
        factory=True,
        host=settings.app.host,
        port=settings.app.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
