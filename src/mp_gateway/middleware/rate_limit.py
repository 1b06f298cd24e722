"""Rate limiting for cart and purchase writes.

Fixed-window counting in Redis:
  1. Key pattern: "ratelimit:{caller}:writes:{window}" where caller is the
     token's user id, or the client IP when there is no valid token
  2. INCR the key; on the first hit EXPIRE it after the window
  3. Over RATE_LIMIT_WRITE_PER_MINUTE -> 429 RateLimitError with Retry-After

Only mutating requests (POST/PATCH/DELETE) under the guarded prefixes count.
Redis is not a source of truth: if it is unreachable the request is let
through and a warning is logged.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError, RateLimitError
from src.mp_common.redis_client import get_redis
from src.mp_common.response import error_response
from src.mp_gateway.auth.jwt_handler import user_id_from_token

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
GUARDED_PREFIXES = ("/api/v1/cart", "/api/v1/purchases")
_WRITE_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})


def client_ip(request: Request, trust_forwarded: bool = False) -> str:
    """Peer address, or the first X-Forwarded-For hop when a trusted proxy sets it.

    The header is client-controlled unless a reverse proxy overwrites it, so it
    is only read when TRUST_FORWARDED_FOR is enabled.
    """
    forwarded = request.headers.get("x-forwarded-for") if trust_forwarded else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def caller_key(request: Request, trust_forwarded: bool = False) -> str:
    auth = request.headers.get("authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            return f"user:{user_id_from_token(token)}"
        except InvalidCredentialsError:
            pass
    return f"ip:{client_ip(request, trust_forwarded)}"


def is_guarded(request: Request) -> bool:
    return request.method in _WRITE_METHODS and request.url.path.startswith(GUARDED_PREFIXES)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        enabled: bool | None = None,
        redis_getter: Callable[[], Awaitable[Any]] | None = None,
        trust_forwarded: bool | None = None,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.RATE_LIMIT_WRITE_PER_MINUTE
        self._enabled = enabled if enabled is not None else settings.RATE_LIMIT_ENABLED
        self._redis_getter = redis_getter or get_redis
        self._trust_forwarded = (
            trust_forwarded if trust_forwarded is not None else settings.TRUST_FORWARDED_FOR
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._enabled or not is_guarded(request):
            return await call_next(request)

        window = int(time.time()) // WINDOW_SECONDS
        key = f"ratelimit:{caller_key(request, self._trust_forwarded)}:writes:{window}"
        try:
            redis = await self._redis_getter()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, WINDOW_SECONDS)
        except (RedisError, OSError):
            logger.warning("Rate limiter unavailable, allowing %s", key, exc_info=True)
            return await call_next(request)

        if count > self._limit:
            retry_after = WINDOW_SECONDS - int(time.time()) % WINDOW_SECONDS
            exc = RateLimitError()
            logger.info("Rate limit exceeded for %s (%d > %d)", key, count, self._limit)
            return JSONResponse(
                status_code=exc.http_status,
                content=error_response(exc.code, exc.message, request).model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
