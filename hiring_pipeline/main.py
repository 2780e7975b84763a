"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from hiring_pipeline import __version__
from hiring_pipeline.core.config import settings
from hiring_pipeline.core.logging import configure_logging
from hiring_pipeline.db.session import engine
from hiring_pipeline.errors import AppError, app_error_handler, request_validation_handler
from hiring_pipeline.routers import health, panels, workflows

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup; dispose the engine pool on shutdown."""
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting %s...", settings.APP_NAME)

    yield

    logger.info("Shutting down %s...", settings.APP_NAME)
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Candidate hiring workflow and interview panel scheduling API",
    version=__version__,
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

app.include_router(health.router, tags=["Health"])
app.include_router(panels.router)
app.include_router(workflows.router)
