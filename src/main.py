"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.mp_cart.api.router import router as cart_router
from src.mp_cart.application.eviction import get_cart_sweeper
from src.mp_common.database import engine
from src.mp_common.errors import AppError
from src.mp_common.redis_client import close_redis, get_redis
from src.mp_common.response import error_response
from src.mp_gateway.middleware.rate_limit import RateLimitMiddleware
from src.mp_gateway.middleware.request_log import RequestLogMiddleware
from src.mp_inventory.api.router import categories_router
from src.mp_inventory.api.router import router as products_router
from src.mp_ledger.api.router import router as ledger_router
from src.mp_purchase.api.router import router as purchase_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: finish sweeps, dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    redis = await get_redis()
    try:
        await redis.ping()
    except Exception:
        # Only the rate limiter uses Redis and it fails open
        logger.warning("Redis not reachable at startup; rate limiting degraded", exc_info=True)
    yield
    # Shutdown
    await get_cart_sweeper().drain()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


# Last added runs first: request ids exist before rate limiting responds
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(categories_router, prefix="/api/v1")
app.include_router(products_router, prefix="/api/v1")
app.include_router(cart_router, prefix="/api/v1")
app.include_router(purchase_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
