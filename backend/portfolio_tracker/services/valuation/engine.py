# backend/portfolio_tracker/services/valuation/engine.py
"""
Valuation engine: ledger + quote + investment type → snapshot.

Pure full recompute. The engine keeps no state between calls, reads nothing
from the database and writes nothing back; RecalculationService does the I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from portfolio_tracker.models import InvestmentType
from portfolio_tracker.services.constants import ZERO
from portfolio_tracker.services.valuation.calculators import (
    CashFlowCalculator,
    CurrentValueCalculator,
    ReturnCalculator,
    UnitAccumulator,
)
from portfolio_tracker.services.valuation.types import (
    LedgerEntry,
    Quote,
    ValuationSnapshot,
)

logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Computes a ValuationSnapshot from the complete ledger of one portfolio.

    Steps:
        1. net_invested = Σ deposits − Σ withdrawals
        2. total_units (mutual fund and stock only)
        3. current_value by investment type (at cost without a usable quote)
        4. total_return and return_percentage

    Calling it twice with the same inputs returns equal snapshots, whatever
    the order of the entries.
    """

    def __init__(
            self,
            unit_accumulator: UnitAccumulator | None = None,
            cash_flow_calculator: CashFlowCalculator | None = None,
            value_calculator: CurrentValueCalculator | None = None,
            return_calculator: ReturnCalculator | None = None,
    ) -> None:
        self._units = unit_accumulator or UnitAccumulator()
        self._cash_flow = cash_flow_calculator or CashFlowCalculator()
        self._value = value_calculator or CurrentValueCalculator()
        self._returns = return_calculator or ReturnCalculator()

    def recompute(
            self,
            investment_type: InvestmentType,
            entries: Sequence[LedgerEntry],
            quote: Quote | None = None,
    ) -> ValuationSnapshot:
        """
        Value a portfolio from scratch.

        Args:
            investment_type: The portfolio's (immutable) type
            entries: Every transaction of the portfolio, in any order
            quote: Latest quote, or None if none was ever entered

        Returns:
            The complete snapshot
        """
        if not entries:
            return ValuationSnapshot.empty()

        quote = quote or Quote()
        flows = self._cash_flow.calculate(entries)
        net_invested = flows.net_invested

        if investment_type.is_unit_denominated:
            total_units = self._units.calculate(entries)
        else:
            total_units = ZERO

        current_value = self._value.calculate(
            investment_type, total_units, net_invested, quote
        )
        returns = self._returns.calculate(current_value, net_invested)

        snapshot = ValuationSnapshot(
            current_value=current_value,
            total_invested=net_invested,
            total_return=returns.total_return,
            return_percentage=returns.return_percentage,
            transaction_count=flows.transaction_count,
            total_units=total_units,
        )

        logger.debug(
            f"Valued {investment_type.value} ledger of {flows.transaction_count} entries: "
            f"value={snapshot.current_value}, invested={snapshot.total_invested}, "
            f"units={snapshot.total_units}"
        )
        return snapshot
