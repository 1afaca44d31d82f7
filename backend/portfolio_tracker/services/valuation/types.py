# backend/portfolio_tracker/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are what the calculators work on. They are NOT Pydantic
schemas; the API shapes live in portfolio_tracker/schemas/.

Design Principles:
- Immutable value objects (frozen=True)
- Decimal for ALL money, unit and rate values (never float)
- Absent quotes are None, not zero

Type Hierarchy:
    TransactionDetails  - Tagged union of the five per-type detail payloads
    LedgerEntry         - One transaction as the engine sees it
    Quote               - Latest NAV or (price USD, FX) for a portfolio
    CashFlowTotals      - Deposits, withdrawals and net invested
    ReturnResult        - Absolute and percentage return
    ValuationSnapshot   - The six figures written back to the portfolio
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Union, TYPE_CHECKING

from portfolio_tracker.models import InvestmentType, TransactionType
from portfolio_tracker.services.constants import ZERO

if TYPE_CHECKING:
    from portfolio_tracker.models import Portfolio, Transaction


# =============================================================================
# TRANSACTION DETAILS (tagged union keyed by investment type)
# =============================================================================

@dataclass(frozen=True)
class CooperativeDetails:
    """Monthly cooperative share purchase with the running total to date."""

    investment_type: ClassVar[InvestmentType] = InvestmentType.COOPERATIVE

    year: int
    period: int
    month: str
    total_invested_to_date: Decimal

    @property
    def units(self) -> Decimal | None:
        return None


@dataclass(frozen=True)
class PVDDetails:
    """
    One monthly provident fund contribution.

    Attributes:
        employee_contribution: Amount deducted from salary
        employer_contribution: Amount matched by the employer
        contribution_percentage: Employee rate as a percentage of salary
        total_fund_value: Fund value reported on the statement for this period
    """

    investment_type: ClassVar[InvestmentType] = InvestmentType.PVD

    year: int
    period: int
    month: str
    employee_contribution: Decimal
    employer_contribution: Decimal
    contribution_percentage: Decimal
    total_fund_value: Decimal

    @property
    def units(self) -> Decimal | None:
        return None

    @property
    def total_contribution(self) -> Decimal:
        return self.employee_contribution + self.employer_contribution


@dataclass(frozen=True)
class MutualFundDetails:
    """
    A mutual fund installment.

    Invariant: the transaction amount equals units_purchased × price_per_unit.
    """

    investment_type: ClassVar[InvestmentType] = InvestmentType.MUTUAL_FUND

    fund_name: str
    installment_no: int
    units_purchased: Decimal
    price_per_unit: Decimal

    @property
    def units(self) -> Decimal | None:
        return self.units_purchased

    @property
    def implied_amount(self) -> Decimal:
        return self.units_purchased * self.price_per_unit


@dataclass(frozen=True)
class StockDetails:
    """
    A stock installment bought in USD and settled in THB.

    Invariant: purchase_value_thb equals
    units_purchased × price_per_unit_usd × exchange_rate, and the
    transaction amount equals purchase_value_thb.
    """

    investment_type: ClassVar[InvestmentType] = InvestmentType.STOCK

    stock_name: str
    installment_no: int
    units_purchased: Decimal
    price_per_unit_usd: Decimal
    exchange_rate: Decimal
    purchase_value_thb: Decimal

    @property
    def units(self) -> Decimal | None:
        return self.units_purchased

    @property
    def implied_amount(self) -> Decimal:
        return self.units_purchased * self.price_per_unit_usd * self.exchange_rate


@dataclass(frozen=True)
class SavingsDetails:
    """Savings account entry with the balance after it."""

    investment_type: ClassVar[InvestmentType] = InvestmentType.SAVINGS

    year: int
    month: str
    balance: Decimal

    @property
    def units(self) -> Decimal | None:
        return None


TransactionDetails = Union[
    CooperativeDetails,
    PVDDetails,
    MutualFundDetails,
    StockDetails,
    SavingsDetails,
]

_DETAILS_BY_TYPE: dict[InvestmentType, type] = {
    InvestmentType.COOPERATIVE: CooperativeDetails,
    InvestmentType.PVD: PVDDetails,
    InvestmentType.MUTUAL_FUND: MutualFundDetails,
    InvestmentType.STOCK: StockDetails,
    InvestmentType.SAVINGS: SavingsDetails,
}

_DECIMAL_FIELDS = frozenset({
    "total_invested_to_date",
    "employee_contribution",
    "employer_contribution",
    "contribution_percentage",
    "total_fund_value",
    "units_purchased",
    "price_per_unit",
    "price_per_unit_usd",
    "exchange_rate",
    "purchase_value_thb",
    "balance",
})


def details_from_dict(data: dict[str, Any] | None) -> TransactionDetails | None:
    """
    Rebuild a typed detail payload from its stored JSON form.

    The dict must carry its tag under "investment_type". Numeric fields are
    stored as strings to keep Decimal precision and are parsed back here.

    Raises:
        ValueError: If the tag is missing or unknown
    """
    if data is None:
        return None

    tag = data.get("investment_type")
    try:
        details_cls = _DETAILS_BY_TYPE[InvestmentType(tag)]
    except ValueError:
        raise ValueError(f"Unknown transaction details type: {tag!r}") from None

    kwargs = {}
    for field in fields(details_cls):
        name = field.name
        value = data[name]
        kwargs[name] = Decimal(str(value)) if name in _DECIMAL_FIELDS else value
    return details_cls(**kwargs)


def details_to_dict(details: TransactionDetails) -> dict[str, Any]:
    """Inverse of details_from_dict: tagged, JSON-safe dict for storage."""
    data: dict[str, Any] = {"investment_type": details.investment_type.value}
    for name, value in asdict(details).items():
        data[name] = str(value) if isinstance(value, Decimal) else value
    return data


# =============================================================================
# ENGINE INPUTS
# =============================================================================

@dataclass(frozen=True)
class LedgerEntry:
    """
    A transaction reduced to what valuation needs.

    Attributes:
        transaction_type: Deposit or withdrawal (gives the sign)
        amount: Positive amount in settlement currency
        details: Typed per-type payload, or None if the entry carries none
        transaction_date: Calendar date (not used by the engine, kept for reports)
    """

    transaction_type: TransactionType
    amount: Decimal
    details: TransactionDetails | None = None
    transaction_date: date | None = None

    @property
    def is_deposit(self) -> bool:
        return self.transaction_type == TransactionType.DEPOSIT

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> LedgerEntry:
        return cls(
            transaction_type=transaction.transaction_type,
            amount=Decimal(transaction.amount),
            details=details_from_dict(transaction.details),
            transaction_date=transaction.date,
        )


@dataclass(frozen=True)
class Quote:
    """
    Latest user-entered market quote for a portfolio.

    Only the fields relevant to the portfolio's type are ever set:
    nav_per_unit for mutual funds, stock_price_usd and exchange_rate for stocks.
    """

    nav_per_unit: Decimal | None = None
    stock_price_usd: Decimal | None = None
    exchange_rate: Decimal | None = None

    @classmethod
    def from_portfolio(cls, portfolio: Portfolio) -> Quote:
        return cls(
            nav_per_unit=portfolio.current_nav_per_unit,
            stock_price_usd=portfolio.current_stock_price_usd,
            exchange_rate=portfolio.current_exchange_rate,
        )

    @property
    def has_nav(self) -> bool:
        """True if a usable NAV is present (absent or non-positive means at cost)."""
        return self.nav_per_unit is not None and self.nav_per_unit > ZERO

    @property
    def has_stock_price(self) -> bool:
        """True if both price and FX rate are present and positive."""
        return (
            self.stock_price_usd is not None
            and self.exchange_rate is not None
            and self.stock_price_usd > ZERO
            and self.exchange_rate > ZERO
        )


# =============================================================================
# CALCULATOR RESULTS
# =============================================================================

@dataclass(frozen=True)
class CashFlowTotals:
    """
    Money in and out of a portfolio.

    Attributes:
        total_deposits: Sum of deposit amounts
        total_withdrawals: Sum of withdrawal amounts
        transaction_count: Number of entries summed
    """

    total_deposits: Decimal
    total_withdrawals: Decimal
    transaction_count: int

    @property
    def net_invested(self) -> Decimal:
        return self.total_deposits - self.total_withdrawals


@dataclass(frozen=True)
class ReturnResult:
    """total_return = current_value − net_invested; percentage is 0 when nothing is invested."""

    total_return: Decimal
    return_percentage: Decimal


@dataclass(frozen=True)
class ValuationSnapshot:
    """
    Derived valuation of one portfolio.

    A pure function of (ledger, quote, investment type). Written back to the
    portfolio as a whole; never patched field by field.

    Attributes:
        current_value: Market value (or net invested when valued at cost)
        total_invested: Net invested (deposits − withdrawals)
        total_return: current_value − total_invested
        return_percentage: total_return / total_invested × 100, or 0
        transaction_count: Number of ledger entries
        total_units: Net units held (0 for types not tracked in units)
    """

    current_value: Decimal
    total_invested: Decimal
    total_return: Decimal
    return_percentage: Decimal
    transaction_count: int
    total_units: Decimal

    @classmethod
    def empty(cls) -> ValuationSnapshot:
        """Snapshot of a portfolio with no transactions."""
        return cls(
            current_value=ZERO,
            total_invested=ZERO,
            total_return=ZERO,
            return_percentage=ZERO,
            transaction_count=0,
            total_units=ZERO,
        )

    @classmethod
    def from_portfolio(cls, portfolio: Portfolio) -> ValuationSnapshot:
        """The snapshot currently stored on a portfolio."""
        return cls(
            current_value=Decimal(portfolio.current_value),
            total_invested=Decimal(portfolio.total_invested),
            total_return=Decimal(portfolio.total_return),
            return_percentage=Decimal(portfolio.return_percentage),
            transaction_count=portfolio.transaction_count,
            total_units=Decimal(portfolio.total_units),
        )
