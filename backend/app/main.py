"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from secure import Secure
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi_limiter import FastAPILimiter
import redis.asyncio as redis  # type: ignore[import-untyped]

from app.api import api_router
from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.services.activity_log_queue import default_queue
from app.services.bootstrap_service import run_bootstrap

logger = logging.getLogger(__name__)

settings = get_settings()

configure_logging()

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allow_origins if origin]


@asynccontextmanager
async def lifespan(_: FastAPI):
    redis_pool = None
    if settings.redis_url:
        try:
            redis_pool = redis.from_url(
                settings.redis_url, encoding="utf-8", decode_responses=True
            )
            await FastAPILimiter.init(redis_pool)
        except Exception:  # pragma: no cover - limiter startup is best effort
            logger.exception("Failed to initialize rate limiter")
    try:
        await run_bootstrap()
    except Exception:  # pragma: no cover - best effort bootstrap
        logger.exception("Failed to apply bootstrap data")
    default_queue.start()
    try:
        yield
    finally:
        await default_queue.stop()
        if redis_pool is not None:
            try:
                await FastAPILimiter.close()
                await redis_pool.aclose()
            except Exception:  # pragma: no cover - limiter shutdown
                logger.exception("Failed to close rate limiter")


app = FastAPI(
    title=settings.app_name,
    description="Reservations with capacity limits and a first-come waitlist.",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure.with_default_headers()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    await _secure_headers.set_headers_async(response)
    return response


app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": settings.app_name}
