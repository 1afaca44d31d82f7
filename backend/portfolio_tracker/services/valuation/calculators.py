# backend/portfolio_tracker/services/valuation/calculators.py
"""
Valuation calculators.

Each calculator does one thing:
- UnitAccumulator: Net units held (mutual funds and stocks)
- CashFlowCalculator: Deposits, withdrawals and net invested
- CurrentValueCalculator: Market value from units and the latest quote
- ReturnCalculator: Absolute and percentage return

All of them are stateless and work on LedgerEntry / Quote value objects,
never on ORM rows, so they can be tested without a database.

Usage:
    units = UnitAccumulator().calculate(entries)
    flows = CashFlowCalculator().calculate(entries)
    value = CurrentValueCalculator().calculate(
        InvestmentType.MUTUAL_FUND, units, flows.net_invested, quote
    )
    result = ReturnCalculator().calculate(value, flows.net_invested)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from portfolio_tracker.models import InvestmentType
from portfolio_tracker.services.constants import ZERO, HUNDRED
from portfolio_tracker.services.valuation.types import (
    CashFlowTotals,
    LedgerEntry,
    Quote,
    ReturnResult,
)

logger = logging.getLogger(__name__)


# =============================================================================
# UNIT ACCUMULATOR
# =============================================================================

class UnitAccumulator:
    """
    Net units held: units bought on deposits minus units on withdrawals.

    Entries without a unit-bearing payload contribute nothing. The sum is
    order-independent and may be negative; callers decide what that means.
    """

    def calculate(self, entries: Iterable[LedgerEntry]) -> Decimal:
        total = ZERO
        for entry in entries:
            units = entry.details.units if entry.details is not None else None
            if units is None:
                continue
            total += units if entry.is_deposit else -units
        return total


# =============================================================================
# CASH FLOW CALCULATOR
# =============================================================================

class CashFlowCalculator:
    """Sums deposit and withdrawal amounts separately."""

    def calculate(self, entries: Iterable[LedgerEntry]) -> CashFlowTotals:
        deposits = ZERO
        withdrawals = ZERO
        count = 0

        for entry in entries:
            count += 1
            if entry.is_deposit:
                deposits += entry.amount
            else:
                withdrawals += entry.amount

        return CashFlowTotals(
            total_deposits=deposits,
            total_withdrawals=withdrawals,
            transaction_count=count,
        )


# =============================================================================
# CURRENT VALUE CALCULATOR
# =============================================================================

class CurrentValueCalculator:
    """
    Current value of a portfolio by investment type.

    Rules:
        mutual_fund: total_units × NAV, if NAV > 0
        stock:       total_units × price_usd × exchange_rate, if both > 0
        otherwise:   net invested (valued at cost)

    Cooperative, PVD and savings portfolios are always valued at cost; their
    quote is never read. A missing quote is not an error.
    """

    def calculate(
            self,
            investment_type: InvestmentType,
            total_units: Decimal,
            net_invested: Decimal,
            quote: Quote,
    ) -> Decimal:
        if investment_type == InvestmentType.MUTUAL_FUND:
            if quote.has_nav:
                return total_units * quote.nav_per_unit
            logger.debug("No NAV quote, valuing mutual fund at cost")
            return net_invested

        if investment_type == InvestmentType.STOCK:
            if quote.has_stock_price:
                return total_units * quote.stock_price_usd * quote.exchange_rate
            logger.debug("No stock price/FX quote, valuing stock at cost")
            return net_invested

        if investment_type in (
                InvestmentType.COOPERATIVE,
                InvestmentType.PVD,
                InvestmentType.SAVINGS,
        ):
            return net_invested

        raise ValueError(f"Unsupported investment type: {investment_type!r}")


# =============================================================================
# RETURN CALCULATOR
# =============================================================================

class ReturnCalculator:
    """
    Absolute and percentage return.

    return_percentage is total_return / net_invested × 100 when net_invested
    is positive, and 0 otherwise (never a division by zero or a negative base).
    No rounding is applied.
    """

    def calculate(self, current_value: Decimal, net_invested: Decimal) -> ReturnResult:
        total_return = current_value - net_invested

        if net_invested > ZERO:
            return_percentage = total_return / net_invested * HUNDRED
        else:
            return_percentage = ZERO

        return ReturnResult(
            total_return=total_return,
            return_percentage=return_percentage,
        )
