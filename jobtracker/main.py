"""Job Tracker - personal job application tracker backed by Appwrite."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from jobtracker import __version__
from jobtracker.core.config import settings
from jobtracker.core.exceptions import RedirectRequired
from jobtracker.core.redis_client import close_redis
from jobtracker.routers import (
    account_router,
    applications_router,
    auth_router,
    notifications_router,
)
from jobtracker.services.dependencies import AppState, build_app_state
from jobtracker.utils.validators import collect_field_errors

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(state: AppState | None = None) -> FastAPI:
    """Build the application; pass ``state`` to run against prebuilt services."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Initializing application...")
        tracker = state or build_app_state()
        app.state.tracker = tracker

        await tracker.auth_state.check_auth()

        if settings.connectivity_probe_enabled:
            logger.info("Starting connectivity monitor...")
            await tracker.connectivity.start()

        logger.info("Application initialized")

        yield

        logger.info("Shutting down...")
        await tracker.close()
        await close_redis()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Job Tracker",
        description="Personal job application tracker backed by Appwrite",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RedirectRequired)
    async def redirect_handler(request: Request, exc: RedirectRequired):
        return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Validation failed",
                "errors": collect_field_errors(exc.errors()),
            },
        )

    app.include_router(auth_router)
    app.include_router(applications_router)
    app.include_router(account_router)
    app.include_router(notifications_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        tracker: AppState = request.app.state.tracker
        return {
            "status": "healthy",
            "service": "jobtracker",
            "version": __version__,
            "authenticated": tracker.auth_state.is_authenticated,
            "connectivity": tracker.connectivity.get_status(),
        }

    return app


app = create_app()
