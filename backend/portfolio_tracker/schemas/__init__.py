# backend/portfolio_tracker/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- errors: Error response formats
- pagination: Pagination metadata for list endpoints
- portfolios: Portfolio CRUD, quotes and user summary
- transactions: Ledger entries, detail payloads, stats and reports

Usage:
    from portfolio_tracker.schemas import PortfolioCreate, TransactionCreate
"""

from portfolio_tracker.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_tracker.schemas.pagination import PaginationMeta
from portfolio_tracker.schemas.portfolios import (
    InvestmentTypeTotalsResponse,
    NavQuoteUpdate,
    PortfolioCreate,
    PortfolioListResponse,
    PortfolioResponse,
    PortfolioSummaryResponse,
    PortfolioUpdate,
    StockQuoteUpdate,
)
from portfolio_tracker.schemas.transactions import (
    CooperativeDetailsSchema,
    EntryDefaultsResponse,
    MutualFundDetailsSchema,
    PVDDetailsSchema,
    PVDSummaryResponse,
    SavingsDetailsSchema,
    StockDetailsSchema,
    TransactionCreate,
    TransactionDetailsSchema,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatsResponse,
    TransactionUpdate,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Pagination
    "PaginationMeta",
    # Portfolios
    "PortfolioCreate",
    "PortfolioUpdate",
    "PortfolioResponse",
    "PortfolioListResponse",
    "PortfolioSummaryResponse",
    "InvestmentTypeTotalsResponse",
    "NavQuoteUpdate",
    "StockQuoteUpdate",
    # Transactions
    "CooperativeDetailsSchema",
    "PVDDetailsSchema",
    "MutualFundDetailsSchema",
    "StockDetailsSchema",
    "SavingsDetailsSchema",
    "TransactionDetailsSchema",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    "TransactionListResponse",
    "TransactionStatsResponse",
    "PVDSummaryResponse",
    "EntryDefaultsResponse",
]
