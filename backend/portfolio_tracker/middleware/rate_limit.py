# backend/portfolio_tracker/middleware/rate_limit.py
"""
Rate limiting with slowapi.

Limits live in portfolio_tracker/services/constants.py. Writes get a lower
limit than reads because each one triggers a full portfolio recompute.
Set RATE_LIMIT_ENABLED=false to switch limiting off (tests do).

Key by: Client IP (X-Forwarded-For only when the peer is a trusted proxy)
Storage: In-memory

Usage:
    from portfolio_tracker.middleware.rate_limit import limiter, RATE_LIMIT_WRITE

    @router.post("/")
    @limiter.limit(RATE_LIMIT_WRITE)
    def create_item(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_tracker.config import settings
from portfolio_tracker.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_WRITE,
)

logger = logging.getLogger(__name__)

# Seconds a limited client is told to wait
RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """
    Client address used as the rate limit key.

    Forwarded headers are only honoured when the immediate peer is a
    trusted proxy, otherwise clients could pick their own key.
    """
    peer_ip = get_remote_address(request)

    if settings.trust_proxy_headers or peer_ip in settings.trusted_proxy_ips:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First entry is the original client
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return peer_ip


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard error envelope, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_HEALTH",
]
