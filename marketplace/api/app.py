"""
FastAPI application factory.

* Registers routes for drivers, garages, quotes, admin, contact and cron.
* Disposes the database engine and Redis pool on shutdown via lifespan events.
* Applies rate-limiting middleware and renders domain errors as JSON.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from marketplace.api import errors
from marketplace.api.middleware import limiter
from marketplace.api.routes import admin, contact, cron, drivers, garage, quotes
from marketplace.infrastructure.database import engine
from marketplace.infrastructure.redis_client import close_redis

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await engine.dispose()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Vehicle Service Marketplace API",
        description=(
            "Driver onboarding, garage booking fulfilment and quote expiry "
            "for a vehicle pickup and service marketplace."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    errors.register(app)

    # Routers
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(garage.router, prefix="/api/v1")
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")
    app.include_router(contact.router, prefix="/api/v1")
    app.include_router(cron.router, prefix="/api/v1")

    return app
