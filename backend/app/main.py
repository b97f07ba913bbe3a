from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.app.core.config import settings
from backend.app.core.logging import configure_logging
from backend.app.core.redis_client import close_redis, init_redis
import backend.app.routers.assignments as assignments
import backend.app.routers.availability as availability
import backend.app.routers.configuration as configuration
import backend.app.routers.health as health
import backend.app.routers.tables as tables


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_redis()
    try:
        yield
    finally:
        await close_redis()


app = FastAPI(
    title="Table Assignment API",
    lifespan=lifespan,
)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(availability.router, prefix=settings.API_PREFIX)
app.include_router(configuration.router, prefix=settings.API_PREFIX)
app.include_router(tables.router, prefix=settings.API_PREFIX)
app.include_router(assignments.router, prefix=settings.API_PREFIX)
