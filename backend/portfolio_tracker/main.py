# backend/portfolio_tracker/main.py
"""
ASGI application for the portfolio tracker.

Wires together:
- logging (before anything else logs)
- the FastAPI app with CORS, rate limiting and correlation IDs
- the mapping from service exceptions to HTTP responses
- the portfolio and transaction routers
- root and health probe endpoints
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from portfolio_tracker.config import settings
from portfolio_tracker.database import check_database_health
from portfolio_tracker.middleware import (
    CorrelationIdMiddleware,
    RATE_LIMIT_HEALTH,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from portfolio_tracker.routers import portfolios_router, transactions_router
from portfolio_tracker.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_tracker.services.exceptions import (
    AmountMismatchError,
    ConcurrentModificationError,
    DetailTypeMismatchError,
    NotFoundError,
    RecalculationError,
    ServiceError,
    ValidationError,
)
from portfolio_tracker.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Personal investment portfolio tracker with automatic revaluation",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Order matters: last added = first executed
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# ERROR MAPPING
# =============================================================================
# Service exceptions carry no HTTP knowledge; the status codes live here.
# Starlette picks the handler of the closest base class, so subclasses
# (e.g. AmountMismatchError) reuse their parent's handler and only the
# "error" name changes.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle missing portfolios and transactions (404)."""
    logger.warning(f"{exc.resource_type} not found: {exc.resource_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle ledger and quote rule violations (400)."""
    logger.warning(f"Rejected by ledger rules: {exc}")

    details: dict = {"field": exc.field} if exc.field else {}
    if isinstance(exc, AmountMismatchError):
        details.update(amount=str(exc.amount), expected=str(exc.expected))
    elif isinstance(exc, DetailTypeMismatchError):
        details.update(portfolio_type=exc.portfolio_type, detail_type=exc.detail_type)

    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=details or None,
        ).model_dump(),
    )


@app.exception_handler(ConcurrentModificationError)
async def concurrent_modification_handler(
    request: Request, exc: ConcurrentModificationError
) -> JSONResponse:
    """Handle a lost snapshot write race (409). The client may retry."""
    logger.warning(f"Concurrent modification of portfolio {exc.portfolio_id}")
    return JSONResponse(
        status_code=409,
        content=ErrorDetail(
            error="ConcurrentModificationError",
            message=str(exc),
            details={"portfolio_id": exc.portfolio_id},
        ).model_dump(),
    )


@app.exception_handler(RecalculationError)
async def recalculation_error_handler(request: Request, exc: RecalculationError) -> JSONResponse:
    """Handle a failed recompute (500). The mutation was rolled back."""
    logger.error(f"Recalculation failed: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="RecalculationError",
            message=str(exc),
            details={"portfolio_id": exc.portfolio_id},
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Any other service failure (500)."""
    logger.error(f"Unhandled service failure: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Wrap FastAPI's {"detail": ...} responses in the standard envelope."""
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail or "Request failed"),
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request-shape errors (422), one entry per failing field."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=errors).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(portfolios_router)  # /portfolios/*
app.include_router(transactions_router)  # /transactions/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """Application name, settlement currency and docs location."""
    return {
        "name": settings.app_name,
        "settlement_currency": settings.settlement_currency,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health of the service and its database.

    Status codes:
    - 200: Database reachable
    - 503: Database unreachable - do not route traffic here
    """
    database = check_database_health()
    healthy = database["status"] == "healthy"
    content = {
        "status": "healthy" if healthy else "unhealthy",
        "checks": {"database": database},
    }

    if not healthy:
        return JSONResponse(status_code=503, content=content)
    return content


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe: succeeds whenever the process is up."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request):
    """Readiness probe: 503 until the database is reachable."""
    if check_database_health()["status"] != "healthy":
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
