"""FastAPI application entrypoint — lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from irrisense.config import get_settings
from irrisense.database import engine
from irrisense.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from irrisense.routes import crops, irrigation, notifications, recommendations

logger = structlog.get_logger("irrisense")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Verify the database is reachable
      3. Connect to Redis (notification channel + daily claims), if enabled

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "irrisense_starting",
        log_level=settings.log_level,
        timezone=settings.local_timezone,
        redis_enabled=settings.redis_enabled,
    )

    redis: Redis | None = None
    app.state.redis = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        if settings.redis_enabled:
            redis = Redis.from_url(settings.redis_url, decode_responses=True)
            await redis.ping()
            app.state.redis = redis
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("irrisense_shutting_down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="IrriSense API",
    description=(
        "Irrigation advice for smallholder plots: FAO-56 style crop water "
        "needs from daily weather, crop stage and soil class, with once-per-day "
        "irrigation logging and notification planning."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


async def _run_readiness_checks(app: FastAPI) -> dict[str, Any]:
    checks: dict[str, Any] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    redis: Redis | None = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"
    return checks


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "irrisense",
        "version": "0.1.0",
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    checks = await _run_readiness_checks(app)
    healthy = all(value in ("ok", "disabled") for value in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(crops.router, prefix="/api/v1")
app.include_router(recommendations.router, prefix="/api/v1")
app.include_router(irrigation.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
