# backend/portfolio_tracker/schemas/transactions.py
"""
Pydantic schemas for Transaction validation.

These schemas define:
- The per-investment-type detail payloads (a discriminated union on
  "investment_type")
- What clients send to create or update a transaction
- What the API returns, including ledger statistics and reports

Validation layers:
- Field constraints: types, lengths, positive numbers, period 1-12
- Model validators: amount required unless derivable, month label default
- LedgerService: payload tag vs portfolio type, amount vs units × price

IMPORTANT: All financial values use Decimal for precision.
Never use float for money!
"""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portfolio_tracker.models import InvestmentType, TransactionType
from portfolio_tracker.schemas.pagination import PaginationMeta
from portfolio_tracker.services.constants import MAX_PERIOD, MIN_PERIOD
from portfolio_tracker.services.valuation.types import (
    CooperativeDetails,
    MutualFundDetails,
    PVDDetails,
    SavingsDetails,
    StockDetails,
    TransactionDetails,
)
from portfolio_tracker.utils.date_utils import month_name, to_ledger_date

PositiveDecimal = Annotated[Decimal, Field(gt=0, max_digits=18, decimal_places=8)]
NonNegativeDecimal = Annotated[Decimal, Field(ge=0, max_digits=18, decimal_places=8)]
Year = Annotated[int, Field(ge=1900, le=2200, examples=[2024])]
Period = Annotated[int, Field(ge=MIN_PERIOD, le=MAX_PERIOD, description="Month of year (1-12)")]


# =============================================================================
# DETAIL PAYLOADS
# =============================================================================

class _DetailsSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_details(self) -> TransactionDetails:
        raise NotImplementedError


class CooperativeDetailsSchema(_DetailsSchema):
    """Monthly cooperative share purchase."""

    investment_type: Literal["cooperative"] = "cooperative"
    year: Year
    period: Period
    month: str | None = Field(
        default=None,
        max_length=20,
        description="Month label; defaults to the English name of the period"
    )
    total_invested_to_date: NonNegativeDecimal

    @model_validator(mode="after")
    def default_month_label(self) -> "CooperativeDetailsSchema":
        if self.month is None:
            self.month = month_name(self.period)
        return self

    def to_details(self) -> CooperativeDetails:
        return CooperativeDetails(
            year=self.year,
            period=self.period,
            month=self.month,
            total_invested_to_date=self.total_invested_to_date,
        )


class PVDDetailsSchema(_DetailsSchema):
    """Monthly provident fund contribution."""

    investment_type: Literal["pvd"] = "pvd"
    year: Year
    period: Period
    month: str | None = Field(default=None, max_length=20)
    employee_contribution: NonNegativeDecimal
    employer_contribution: NonNegativeDecimal
    contribution_percentage: Decimal = Field(
        ...,
        ge=0,
        le=100,
        max_digits=18,
        decimal_places=8,
        description="Employee contribution rate, % of salary",
        examples=["5", "15"]
    )
    total_fund_value: NonNegativeDecimal

    @model_validator(mode="after")
    def default_month_label(self) -> "PVDDetailsSchema":
        if self.month is None:
            self.month = month_name(self.period)
        return self

    def to_details(self) -> PVDDetails:
        return PVDDetails(
            year=self.year,
            period=self.period,
            month=self.month,
            employee_contribution=self.employee_contribution,
            employer_contribution=self.employer_contribution,
            contribution_percentage=self.contribution_percentage,
            total_fund_value=self.total_fund_value,
        )


class MutualFundDetailsSchema(_DetailsSchema):
    """Mutual fund installment: amount = units_purchased × price_per_unit."""

    investment_type: Literal["mutual_fund"] = "mutual_fund"
    fund_name: str = Field(..., min_length=1, max_length=100, examples=["KFSDIV"])
    installment_no: int = Field(..., ge=1)
    units_purchased: PositiveDecimal
    price_per_unit: PositiveDecimal

    @field_validator("fund_name")
    @classmethod
    def normalize_fund_name(cls, v: str) -> str:
        return v.strip()

    def to_details(self) -> MutualFundDetails:
        return MutualFundDetails(
            fund_name=self.fund_name,
            installment_no=self.installment_no,
            units_purchased=self.units_purchased,
            price_per_unit=self.price_per_unit,
        )


class StockDetailsSchema(_DetailsSchema):
    """
    Stock installment bought in USD.

    purchase_value_thb = units_purchased × price_per_unit_usd × exchange_rate;
    it is derived when omitted.
    """

    investment_type: Literal["stock"] = "stock"
    stock_name: str = Field(..., min_length=1, max_length=100, examples=["VOO"])
    installment_no: int = Field(..., ge=1)
    units_purchased: PositiveDecimal
    price_per_unit_usd: PositiveDecimal
    exchange_rate: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="THB per 1 USD at purchase",
        examples=["35.50"]
    )
    purchase_value_thb: Decimal | None = Field(
        default=None,
        gt=0,
        description="Purchase value in THB (derived if omitted)"
    )

    @field_validator("stock_name")
    @classmethod
    def normalize_stock_name(cls, v: str) -> str:
        return v.strip()

    def to_details(self) -> StockDetails:
        implied = self.units_purchased * self.price_per_unit_usd * self.exchange_rate
        return StockDetails(
            stock_name=self.stock_name,
            installment_no=self.installment_no,
            units_purchased=self.units_purchased,
            price_per_unit_usd=self.price_per_unit_usd,
            exchange_rate=self.exchange_rate,
            purchase_value_thb=self.purchase_value_thb if self.purchase_value_thb is not None else implied,
        )


class SavingsDetailsSchema(_DetailsSchema):
    """Savings entry with the account balance after it."""

    investment_type: Literal["savings"] = "savings"
    year: Year
    month: str = Field(..., min_length=1, max_length=20, examples=["January"])
    balance: NonNegativeDecimal

    def to_details(self) -> SavingsDetails:
        return SavingsDetails(year=self.year, month=self.month, balance=self.balance)


TransactionDetailsSchema = Annotated[
    Union[
        CooperativeDetailsSchema,
        PVDDetailsSchema,
        MutualFundDetailsSchema,
        StockDetailsSchema,
        SavingsDetailsSchema,
    ],
    Field(discriminator="investment_type"),
]

_UNIT_PRICED = (MutualFundDetailsSchema, StockDetailsSchema)


def _coerce_date(v: Any) -> Any:
    if isinstance(v, (str, dt.datetime)):
        return to_ledger_date(v)
    return v


# =============================================================================
# CREATE SCHEMA
# =============================================================================

class TransactionCreate(BaseModel):
    """
    Schema for recording a deposit or withdrawal.

    amount is in the settlement currency (THB). It may be omitted for
    mutual fund and stock entries, where it is derived from the details.
    """

    portfolio_id: int = Field(
        ...,
        gt=0,
        description="ID of the portfolio this transaction belongs to"
    )

    transaction_type: TransactionType = Field(
        ...,
        description="Deposit or withdrawal",
        examples=[TransactionType.DEPOSIT, TransactionType.WITHDRAWAL]
    )

    amount: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Amount in settlement currency (always positive)",
        examples=["1000", "2500.50"]
    )

    date: dt.date = Field(
        ...,
        description="Transaction date; timestamps are truncated to their calendar day",
        examples=["2024-03-15"]
    )

    notes: str | None = Field(default=None, max_length=1000)

    details: TransactionDetailsSchema | None = Field(
        default=None,
        description="Investment-type specific payload"
    )

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return _coerce_date(v)

    @model_validator(mode="after")
    def require_amount_or_unit_details(self) -> "TransactionCreate":
        if self.amount is None and not isinstance(self.details, _UNIT_PRICED):
            raise ValueError("amount is required unless mutual fund or stock details are given")
        return self


# =============================================================================
# UPDATE SCHEMA
# =============================================================================

class TransactionUpdate(BaseModel):
    """
    Schema for updating an existing transaction.

    All fields are optional; only fields sent are changed. Send
    "details": null to clear the payload.

    Note: portfolio_id CANNOT be changed. Delete and re-create instead.
    """

    model_config = ConfigDict(extra="forbid")

    transaction_type: TransactionType | None = None

    amount: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Corrected amount"
    )

    date: dt.date | None = Field(default=None, description="Corrected date")

    notes: str | None = Field(default=None, max_length=1000)

    details: TransactionDetailsSchema | None = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return _coerce_date(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "TransactionUpdate":
        for name in ("transaction_type", "amount", "date"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def to_changes(self) -> dict[str, Any]:
        """Fields explicitly sent, with details converted for the ledger."""
        changes = {name: getattr(self, name) for name in self.model_fields_set}
        if changes.get("details") is not None:
            changes["details"] = changes["details"].to_details()
        return changes


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class TransactionResponse(BaseModel):
    """A stored transaction."""

    id: int = Field(..., description="Unique identifier")
    portfolio_id: int = Field(..., description="ID of the portfolio")
    transaction_type: TransactionType
    amount: Decimal = Field(..., description="Amount in settlement currency")
    date: dt.date
    notes: str | None = None
    details: TransactionDetailsSchema | None = None
    created_at: dt.datetime = Field(..., description="When the transaction was recorded")
    updated_at: dt.datetime = Field(..., description="When the transaction was last modified")

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    """Paginated transaction list."""

    items: list[TransactionResponse] = Field(..., description="List of transactions for current page")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")


class TransactionStatsResponse(BaseModel):
    """Money in and out of one portfolio."""

    portfolio_id: int
    total_deposits: Decimal
    total_withdrawals: Decimal
    net_invested: Decimal = Field(..., description="total_deposits - total_withdrawals")
    transaction_count: int


class PVDSummaryResponse(BaseModel):
    """Provident fund contributions for one year."""

    portfolio_id: int
    year: int
    entries: list[TransactionResponse] = Field(..., description="Entries of the year, by period")
    total_employee_contribution: Decimal
    total_employer_contribution: Decimal
    total_contribution: Decimal
    available_years: list[int] = Field(..., description="Years with entries, newest first")


class EntryDefaultsResponse(BaseModel):
    """Pre-fill values for the add-transaction form."""

    portfolio_id: int
    investment_type: InvestmentType
    next_installment_no: int = Field(..., ge=1)
    fund_names: list[str] = Field(default_factory=list)
    stock_names: list[str] = Field(default_factory=list)
