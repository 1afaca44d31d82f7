# backend/portfolio_tracker/routers/__init__.py
"""
API routers for the Portfolio Tracker.

Each router handles a specific domain:
- portfolios: Portfolio CRUD, quotes, recalculation, reports
- transactions: Deposit/withdrawal ledger
"""

from portfolio_tracker.routers.portfolios import router as portfolios_router
from portfolio_tracker.routers.transactions import router as transactions_router

__all__ = [
    "portfolios_router",
    "transactions_router",
]
