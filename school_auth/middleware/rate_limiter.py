"""
School Auth — Sliding window rate limiter middleware (Redis-backed)

Limits credential endpoints to RATE_LIMIT_MAX_ATTEMPTS requests per
RATE_LIMIT_WINDOW_SECONDS per email (client IP when the body has none).
Uses sorted sets (ZADD/ZREMRANGEBYSCORE/ZCARD) for a true sliding window shared
by every worker process.
"""
import json
import logging
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from school_auth.core.config import get_settings
from school_auth.core.exceptions import RateLimitError, error_payload
from school_auth.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:"
LIMITED_PATHS = {
    "/auth/login": "login",
    "/auth/forgot-password": "forgot-password",
}


class SlidingWindowRateLimiter(BaseHTTPMiddleware):
    """
    Applies only to POST on LIMITED_PATHS. The body is read here and replayed
    to the route by Starlette.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        bucket = LIMITED_PATHS.get(request.url.path.rstrip("/"))
        if not settings.RATE_LIMIT_ENABLED or request.method != "POST" or bucket is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        body = await request.body()
        try:
            data = json.loads(body)
            tracking_key = data.get("email") or client_ip
        except (ValueError, AttributeError):
            tracking_key = client_ip

        redis = get_redis()
        key = f"{RATE_LIMIT_PREFIX}{bucket}:{tracking_key}"
        now = time.time()
        window_start = now - settings.RATE_LIMIT_WINDOW_SECONDS

        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, "-inf", window_start)
        pipe.zcard(key)
        pipe.zadd(key, {str(now): now})
        pipe.expire(key, settings.RATE_LIMIT_WINDOW_SECONDS + 1)
        results = await pipe.execute()

        attempt_count = results[1]  # count before this attempt

        if attempt_count >= settings.RATE_LIMIT_MAX_ATTEMPTS:
            logger.warning(
                "Rate limit exceeded on %s from %s (%s)",
                request.url.path, client_ip, request.headers.get("user-agent"),
            )
            # Middleware sits outside the app exception handlers, so the error
            # envelope is built here rather than raised.
            exc = RateLimitError("Too many authentication attempts, please try again later")
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    **error_payload(exc.message),
                    "retryAfter": settings.RATE_LIMIT_WINDOW_SECONDS,
                },
                headers={"Retry-After": str(settings.RATE_LIMIT_WINDOW_SECONDS)},
            )

        return await call_next(request)
