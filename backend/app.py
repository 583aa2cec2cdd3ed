"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.v1 import api_router
from core import configure_logging, settings
from db.session import async_engine
from services import RateLimitMiddleware, get_rate_limiter

RATE_LIMIT_EXEMPT_PATHS = ("/api/v1/health", "/docs", "/openapi.json")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await async_engine.dispose()


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    application = FastAPI(title="homelead", lifespan=lifespan)
    application.add_middleware(
        RateLimitMiddleware,
        limiter_factory=get_rate_limiter,
        exempt_paths=RATE_LIMIT_EXEMPT_PATHS,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )
    application.include_router(api_router)
    return application
