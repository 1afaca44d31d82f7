# backend/portfolio_tracker/schemas/portfolios.py
"""
Pydantic schemas for Portfolio validation.

These schemas define:
- What data clients must send (Create)
- What data clients can update (Update)
- What data the API returns (Response, Summary)

Note: user_id is an opaque owner id handed over by the upstream auth
layer. It is set once at creation and never changes.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from portfolio_tracker.models import InvestmentType
from portfolio_tracker.schemas.pagination import PaginationMeta
from portfolio_tracker.services.constants import HUNDRED, ZERO


# =============================================================================
# BASE SCHEMA
# =============================================================================

class PortfolioBase(BaseModel):
    """Descriptive fields common to Create and Response."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        examples=["Cooperative Shares", "KFSDIV", "S&P 500"],
        description="Name of the portfolio"
    )

    target_amount: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Savings goal in settlement currency"
    )

    description: str | None = Field(default=None, max_length=500)

    color: str | None = Field(
        default=None,
        max_length=20,
        examples=["#3B82F6"],
        description="Display color"
    )

    @field_validator('name')
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Normalize name: trim whitespace."""
        return v.strip()


# =============================================================================
# CREATE SCHEMA
# =============================================================================

class PortfolioCreate(PortfolioBase):
    """
    Schema for creating a new portfolio.

    investment_type is fixed for the life of the portfolio.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Opaque id of the owning user"
    )

    investment_type: InvestmentType = Field(
        ...,
        examples=[InvestmentType.MUTUAL_FUND, InvestmentType.PVD]
    )


# =============================================================================
# UPDATE SCHEMA
# =============================================================================

class PortfolioUpdate(BaseModel):
    """
    Schema for updating an existing portfolio.

    All fields are optional; only fields sent are changed.
    investment_type and user_id cannot be changed (rejected with 422).
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    target_amount: Decimal | None = Field(default=None, gt=0, max_digits=18, decimal_places=8)
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, max_length=20)

    @field_validator('name')
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip()


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class PortfolioResponse(PortfolioBase):
    """
    A portfolio with its last computed valuation and latest quote.

    Values are in settlement currency, unrounded.
    """

    id: int = Field(..., description="Unique identifier")
    user_id: str = Field(..., description="Owner id")
    investment_type: InvestmentType

    current_value: Decimal
    total_invested: Decimal = Field(..., description="Deposits minus withdrawals")
    total_return: Decimal = Field(..., description="current_value - total_invested")
    return_percentage: Decimal = Field(..., description="total_return / total_invested x 100, 0 if nothing invested")
    transaction_count: int
    total_units: Decimal = Field(..., description="Net units held (mutual funds and stocks)")

    current_nav_per_unit: Decimal | None = None
    current_stock_price_usd: Decimal | None = None
    current_exchange_rate: Decimal | None = None
    quote_updated_at: datetime | None = None

    snapshot_updated_at: datetime | None = None
    created_at: datetime = Field(..., description="When the portfolio was created")
    updated_at: datetime = Field(..., description="When the portfolio was last modified")

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def target_progress(self) -> Decimal | None:
        """current_value as a percentage of target_amount."""
        if self.target_amount is None or self.target_amount <= ZERO:
            return None
        return self.current_value / self.target_amount * HUNDRED


class PortfolioListResponse(BaseModel):
    """Paginated portfolio list."""

    items: list[PortfolioResponse] = Field(..., description="List of portfolios for current page")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")


class InvestmentTypeTotalsResponse(BaseModel):
    """Totals of one investment type within a user's summary."""

    investment_type: InvestmentType
    portfolio_count: int
    current_value: Decimal
    total_invested: Decimal
    total_return: Decimal

    model_config = ConfigDict(from_attributes=True)


class PortfolioSummaryResponse(BaseModel):
    """Totals across all portfolios of a user."""

    user_id: str
    total_value: Decimal
    total_invested: Decimal
    total_return: Decimal
    return_percentage: Decimal
    transaction_count: int
    portfolio_count: int
    by_type: list[InvestmentTypeTotalsResponse]

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# QUOTE SCHEMAS
# =============================================================================

class NavQuoteUpdate(BaseModel):
    """Latest NAV per unit of a mutual fund."""

    nav_per_unit: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        examples=["12.3456"]
    )


class StockQuoteUpdate(BaseModel):
    """Latest stock price in USD and the THB/USD exchange rate."""

    price_usd: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8, examples=["110.25"])
    exchange_rate: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="THB per 1 USD",
        examples=["35.10"]
    )
