"""ThumbnailAI API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ThumbnailError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Expired cache rows are purged once at startup; a failed purge is logged and
      never blocks startup (expired rows are already logical misses)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from thumbnail_ai.api.error_handlers import register_error_handlers
from thumbnail_ai.api.routes import editor, generation, health, projects, trial
from thumbnail_ai.config import get_settings
from thumbnail_ai.core.errors import StorageError
from thumbnail_ai.infrastructure import database
from thumbnail_ai.infrastructure.observability import setup_logging
from thumbnail_ai.services.generation_cache import GenerationCache, SqlCacheRepository

logger = logging.getLogger(__name__)


async def purge_expired_cache() -> int:
    try:
        async with database.db_manager.session() as db:
            return await GenerationCache(SqlCacheRepository(db)).purge_expired()
    except (StorageError, OSError) as e:
        logger.warning(f"Startup cache purge failed: {e}")
        return 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await purge_expired_cache()
    logger.info("ThumbnailAI API started")
    yield
    logger.info("ThumbnailAI API shutting down")
    await database.close_db()


app = FastAPI(
    title="ThumbnailAI API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(projects.router)
app.include_router(editor.router)
app.include_router(trial.router)
app.include_router(generation.router)

register_error_handlers(app)
