import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from subtracker import __version__
from subtracker.cache import cache
from subtracker.config import settings
from subtracker.database import Base, build_engine, build_session_factory
from subtracker.logging_config import configure_logging
from subtracker.middleware import TimingMiddleware
from subtracker.routers import subscriptions
from subtracker.routers.errors import register_exception_handlers

import subtracker.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger("subtracker")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    if settings.CREATE_TABLES_ON_STARTUP:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    if settings.CACHE_ENABLED:
        await cache.connect(settings.REDIS_URL)

    logger.info("Subscription service started", extra={"env": settings.APP_ENV})
    yield

    # Shutdown
    logger.info("Shutting down")
    await cache.disconnect()
    await engine.dispose()


app = FastAPI(
    title="Subscription Tracker API",
    description="REST API for tracking user subscriptions to paid services",
    version=__version__,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware, logger=logging.getLogger("subtracker.access"))
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error translation
register_exception_handlers(app, logger)

# Routers
app.include_router(subscriptions.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": __version__, "cache": cache.stats}
