"""profilekit API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ProfileKitError → structured JSON responses
    - Database, default project and orphan pruning run on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event
    - Orphan pruning at startup is opportunistic; disable with PRUNE_ORPHANS_ON_STARTUP=false
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profilekit.api.error_handlers import register_error_handlers
from profilekit.api.routes import expand, health, profiles
from profilekit.config import get_settings
from profilekit.infrastructure.database import init_db
from profilekit.infrastructure.observability import setup_logging
from profilekit.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
    )
    service = ProfileService(manager)
    await service.ensure_default_project()
    if settings.prune_orphans_on_startup:
        await service.remove_unreferenced_profiles()
    logger.info("profilekit API started")
    yield
    logger.info("profilekit API shutting down")
    await manager.close()


app = FastAPI(
    title="profilekit API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(profiles.router)
app.include_router(expand.router)

register_error_handlers(app)
