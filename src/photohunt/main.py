"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from photohunt.admin.router import router as admin_router
from photohunt.auth.router import router as auth_router
from photohunt.config import get_settings
from photohunt.database import close_db, get_session, init_db
from photohunt.game.router import router as game_router
from photohunt.game.seed import seed_all
from photohunt.health.router import router as health_router
from photohunt.middleware import setup_middleware
from photohunt.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Seed the admin account and starter words (idempotent)
    try:
        async for db in get_session():
            await seed_all(db)
            break
    except Exception:  # noqa: BLE001
        logger.warning("seeding_failed", hint="run `alembic upgrade head` first", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Photo Hunt API",
        description="Backend API for the booth photo scavenger hunt",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(game_router)
    app.include_router(admin_router)

    return app


app = create_app()
