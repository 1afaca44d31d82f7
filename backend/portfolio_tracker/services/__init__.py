# backend/portfolio_tracker/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions (services/exceptions.py)
- Receive database sessions as parameters (not via Depends)
- Own the unit of work: a mutation and its recompute commit together

Architecture:
    services/
    ├── __init__.py             # This file
    ├── exceptions.py           # Domain exceptions
    ├── constants.py            # Shared constants and rate limits
    ├── protocols.py            # Store interfaces (Protocol classes)
    ├── stores.py               # SQLAlchemy ledger and portfolio stores
    ├── ledger.py               # LedgerService (transactions, stats, reports)
    ├── quotes.py               # QuoteService (NAV, stock price + FX)
    ├── portfolio_service.py    # PortfolioService (CRUD, user summary)
    └── valuation/              # Valuation engine and RecalculationService

Usage:
    from portfolio_tracker.services import LedgerService, QuoteService
"""

from portfolio_tracker.services.ledger import LedgerService
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.quotes import QuoteService
from portfolio_tracker.services.valuation import RecalculationService, ValuationEngine

__all__ = [
    "LedgerService",
    "PortfolioService",
    "QuoteService",
    "RecalculationService",
    "ValuationEngine",
]
