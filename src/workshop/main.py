"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from workshop.admin.router import router as admin_router
from workshop.catalog.router import admin_router as catalog_admin_router
from workshop.catalog.router import router as catalog_router
from workshop.config import Settings, get_settings
from workshop.database import Database
from workshop.exceptions import PersistenceError
from workshop.gamification.router import router as gamification_router
from workshop.health.router import router as health_router
from workshop.interactives.router import router as interactives_router
from workshop.marathons.router import admin_router as marathons_admin_router
from workshop.marathons.router import router as marathons_router
from workshop.middleware import setup_middleware
from workshop.moderation.router import admin_router as moderation_admin_router
from workshop.moderation.router import router as moderation_router
from workshop.quizzes.router import admin_router as quizzes_admin_router
from workshop.quizzes.router import router as quizzes_router
from workshop.redis_client import close_redis, init_redis
from workshop.seed import seed_catalog
from workshop.shop.router import router as shop_router
from workshop.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    owned = app.state.database is None
    database: Database = app.state.database or Database(settings.database_url, settings.database_echo)

    # No store, no service: fail fast instead of running half-initialized
    try:
        await database.check_connection()
    except PersistenceError:
        logger.critical("database_unavailable", exc_info=True)
        await database.dispose()
        raise SystemExit(1) from None
    app.state.database = database

    if settings.redis_url:
        await init_redis(settings.redis_url)

    if settings.seed_on_startup:
        async with database.session() as session:
            await seed_catalog(session, settings)

    yield

    await close_redis()
    if owned:
        await database.dispose()
        app.state.database = None


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``database`` may be injected (tests); otherwise the lifespan builds one
    from ``settings.database_url``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Inspiration Workshop API",
        description="Backend API for the Inspiration Workshop Mini-App and its admin panel",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(catalog_router)
    app.include_router(quizzes_router)
    app.include_router(marathons_router)
    app.include_router(interactives_router)
    app.include_router(shop_router)
    app.include_router(moderation_router)
    app.include_router(gamification_router)
    app.include_router(admin_router)
    app.include_router(catalog_admin_router)
    app.include_router(quizzes_admin_router)
    app.include_router(marathons_admin_router)
    app.include_router(moderation_admin_router)

    return app


app = create_app()
