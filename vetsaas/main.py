"""FastAPI application factory."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vetsaas.api.v1.router import api_router
from vetsaas.cache.backends.factory import close_cache_backend
from vetsaas.core.config import settings
from vetsaas.core.exceptions import register_exception_handlers
from vetsaas.core.logging import setup_logging
from vetsaas.db.session import engine


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
    yield
    await close_cache_backend()
    await engine.dispose()
    logger.info(f"Stopped {settings.PROJECT_NAME}")


def create_application() -> FastAPI:
    setup_logging()
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url=f"{settings.API_PREFIX}/docs",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    register_exception_handlers(application)
    application.include_router(api_router, prefix=f"{settings.API_PREFIX}/v1")

    @application.get("/health", tags=["health"])
    async def health_check():
        return {"status": "healthy", "version": settings.VERSION}

    return application


app = create_application()
