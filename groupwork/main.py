"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groupwork.core.config import Settings, settings
from groupwork.core.dependencies import build_services
from groupwork.core.logging_setup import setup_logging
from groupwork.errors import (
    AppError,
    app_error_handler,
    request_validation_handler,
    storage_error_handler,
    unhandled_error_handler,
)
from groupwork.routers import activities, dashboard, groups, health, notifications, tasks, users

logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    config: Settings = settings,
) -> FastAPI:
    """Build the application; tests pass their own session factory."""
    if session_factory is None:
        from groupwork.db.session import async_session_maker

        session_factory = async_session_maker

    services = build_services(session_factory, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config.LOG_LEVEL)
        logger.info("Starting %s", config.APP_NAME)
        yield
        # Let deferred notifications finish before the loop goes away
        await services.job_queue.drain()
        logger.info("Shutting down %s", config.APP_NAME)

    app = FastAPI(
        title=config.APP_NAME,
        description="Backend API for group task collaboration",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(tasks.router)
    app.include_router(groups.router)
    app.include_router(notifications.router)
    app.include_router(activities.router)
    app.include_router(dashboard.router)
    app.include_router(users.router)
    return app


app = create_app()
