"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Build the FastAPI application (create_app) with metadata and routers
  - Register RFC7807 exception handlers
  - Open/close the PostgreSQL pool in the lifespan (skipped in test env)
  - Expose a liveness check at /healthz

Collaborators:
  - interfaces.api.http.routers: access grants and documents endpoints
  - interfaces.api.http.exception_handlers: error -> HTTP mapping
  - infrastructure.db.pool: init_pool / close_pool
  - crosscutting.config.get_settings

Notes:
  - /v1 prefix allows API versioning
  - Env validation happens in the lifespan, not at import time
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .crosscutting.config import get_settings
from .crosscutting.logger import logger
from .infrastructure.db.pool import close_pool, init_pool
from .interfaces.api.http.exception_handlers import register_exception_handlers
from .interfaces.api.http.routers import access_grants_router, documents_router

API_PREFIX = "/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()
    uses_database = not settings.is_test()

    if uses_database:
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        logger.info(
            "HealthDoc API starting up",
            extra={
                "app_env": settings.app_env,
                "retention_years": settings.document_retention_years,
                "db_pool_min": settings.db_pool_min_size,
                "db_pool_max": settings.db_pool_max_size,
            },
        )
        yield
    finally:
        if uses_database:
            close_pool()
        logger.info("HealthDoc API shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="HealthDoc API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "documents", "description": "Document lifecycle and OCR"},
            {"name": "access-grants", "description": "Per-document access grants"},
        ],
    )

    register_exception_handlers(app)
    app.include_router(documents_router, prefix=API_PREFIX)
    app.include_router(access_grants_router, prefix=API_PREFIX)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict:
        return {"ok": True}

    return app


app = create_app()

__all__ = ["app", "create_app"]
