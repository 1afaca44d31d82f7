# backend/portfolio_tracker/dependencies.py
"""
Dependency injection for FastAPI routers.

Services are stateless apart from their collaborators, so one instance of
each is shared across requests. They are created lazily on first use.

Usage in routers:
    from portfolio_tracker.dependencies import get_ledger_service

    @router.post("/")
    def create_transaction(
        service: Annotated[LedgerService, Depends(get_ledger_service)],
    ):
        ...
"""

import logging
from functools import lru_cache

from portfolio_tracker.services.ledger import LedgerService
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.quotes import QuoteService
from portfolio_tracker.services.valuation import RecalculationService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: get_recalculation_service is shared by the other three


@lru_cache(maxsize=1)
def get_recalculation_service() -> RecalculationService:
    logger.debug("Initializing singleton RecalculationService")
    return RecalculationService()


@lru_cache(maxsize=1)
def get_ledger_service() -> LedgerService:
    logger.debug("Initializing singleton LedgerService")
    return LedgerService(recalculation_service=get_recalculation_service())


@lru_cache(maxsize=1)
def get_quote_service() -> QuoteService:
    logger.debug("Initializing singleton QuoteService")
    return QuoteService(recalculation_service=get_recalculation_service())


@lru_cache(maxsize=1)
def get_portfolio_service() -> PortfolioService:
    logger.debug("Initializing singleton PortfolioService")
    return PortfolioService(recalculation_service=get_recalculation_service())


def clear_service_caches() -> None:
    """Drop the shared instances so the next request builds fresh ones (tests)."""
    get_recalculation_service.cache_clear()
    get_ledger_service.cache_clear()
    get_quote_service.cache_clear()
    get_portfolio_service.cache_clear()
    logger.info("Cleared all service singleton caches")
