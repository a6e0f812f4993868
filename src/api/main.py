"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.invites import DigestCache

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "v1",
        "description": "Registration Gate API v1 - Invite and certificate gated self-service registration",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the process-wide digest cache and database pool.

    Settings are loaded first, so invalid configuration aborts startup
    before any connection is opened.
    """
    settings = get_settings()

    logger.info("Serving realm %s", settings.realm)
    if settings.invite_config() is None:
        logger.warning("No invite secret configured; only certificate registrations are possible")

    app.state.digest_cache = DigestCache()

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    run_migrations(pool)
    app.state.pool = pool

    logger.info("Database ready, migrations applied")

    yield

    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="registration-gate",
    description="Registration Gate API - Invite and certificate gated self-service registration",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """Report healthy once the database answers a trivial query."""
    with request.app.state.pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
