# backend/tests/services/test_valuation_engine.py
"""
Unit tests for ValuationEngine.

The engine is a pure function of (investment type, ledger, quote), so these
tests need no database. Each scenario documents the manual calculation.

Test Scenarios:
    A. Mutual fund without a NAV: valued at cost
    B. Mutual fund with a NAV
    C. Stock with price in USD and THB/USD rate
    D. Withdrawal reduces net invested
    E. Savings never reads a quote
    F. Empty ledger
Plus: idempotence, order independence, the zero-investment guard.
"""

from decimal import Decimal
from itertools import permutations

import pytest

from portfolio_tracker.models import InvestmentType, TransactionType
from portfolio_tracker.services.valuation import (
    LedgerEntry,
    MutualFundDetails,
    Quote,
    SavingsDetails,
    StockDetails,
    ValuationEngine,
    ValuationSnapshot,
)


@pytest.fixture
def engine() -> ValuationEngine:
    return ValuationEngine()


@pytest.fixture
def fund_deposit() -> LedgerEntry:
    """100 units at 10 THB = 1,000 THB."""
    details = MutualFundDetails(
        fund_name="KFSDIV",
        installment_no=1,
        units_purchased=Decimal("100"),
        price_per_unit=Decimal("10"),
    )
    return LedgerEntry(TransactionType.DEPOSIT, Decimal("1000"), details)


@pytest.fixture
def stock_deposit() -> LedgerEntry:
    """10 shares at 175.50 USD with 35.20 THB/USD = 61,776 THB."""
    details = StockDetails(
        stock_name="AAPL",
        installment_no=1,
        units_purchased=Decimal("10"),
        price_per_unit_usd=Decimal("175.50"),
        exchange_rate=Decimal("35.20"),
        purchase_value_thb=Decimal("61776"),
    )
    return LedgerEntry(TransactionType.DEPOSIT, Decimal("61776"), details)


class TestScenarios:
    """Worked examples, one per investment type behaviour."""

    def test_a_mutual_fund_without_nav_is_at_cost(self, engine, fund_deposit):
        snapshot = engine.recompute(InvestmentType.MUTUAL_FUND, [fund_deposit], Quote())

        assert snapshot.total_invested == Decimal("1000")
        assert snapshot.current_value == Decimal("1000")
        assert snapshot.total_return == Decimal("0")
        assert snapshot.return_percentage == Decimal("0")
        assert snapshot.total_units == Decimal("100")
        assert snapshot.transaction_count == 1

    def test_b_mutual_fund_priced_by_nav(self, engine, fund_deposit):
        # 100 units × 12 = 1,200; return 200 on 1,000 = 20%
        snapshot = engine.recompute(
            InvestmentType.MUTUAL_FUND, [fund_deposit], Quote(nav_per_unit=Decimal("12"))
        )

        assert snapshot.current_value == Decimal("1200")
        assert snapshot.total_return == Decimal("200")
        assert snapshot.return_percentage == Decimal("20")

    def test_c_stock_with_fx_conversion(self, engine, stock_deposit):
        # 10 × 184.70 × 35.00 = 64,645; return 64,645 - 61,776 = 2,869
        quote = Quote(stock_price_usd=Decimal("184.70"), exchange_rate=Decimal("35.00"))

        snapshot = engine.recompute(InvestmentType.STOCK, [stock_deposit], quote)

        assert snapshot.total_invested == Decimal("61776")
        assert snapshot.current_value == Decimal("64645")
        assert snapshot.total_return == Decimal("2869")
        assert snapshot.return_percentage == Decimal("2869") / Decimal("61776") * Decimal("100")
        assert snapshot.total_units == Decimal("10")

    def test_c_stock_without_quote_is_at_cost(self, engine, stock_deposit):
        snapshot = engine.recompute(InvestmentType.STOCK, [stock_deposit])

        assert snapshot.current_value == Decimal("61776")
        assert snapshot.total_return == Decimal("0")

    def test_d_withdrawal_reduces_net_invested(self, engine):
        entries = [
            LedgerEntry(TransactionType.DEPOSIT, Decimal("5000")),
            LedgerEntry(TransactionType.WITHDRAWAL, Decimal("2000")),
        ]

        snapshot = engine.recompute(InvestmentType.COOPERATIVE, entries)

        assert snapshot.total_invested == Decimal("3000")
        assert snapshot.current_value == Decimal("3000")
        assert snapshot.transaction_count == 2

    def test_e_savings_ignores_any_quote(self, engine):
        details = SavingsDetails(year=2024, month="January", balance=Decimal("1000"))
        entries = [
            LedgerEntry(TransactionType.DEPOSIT, Decimal("1000"), details),
            LedgerEntry(TransactionType.DEPOSIT, Decimal("500")),
        ]
        quote = Quote(
            nav_per_unit=Decimal("50"),
            stock_price_usd=Decimal("10"),
            exchange_rate=Decimal("35"),
        )

        snapshot = engine.recompute(InvestmentType.SAVINGS, entries, quote)

        assert snapshot.current_value == Decimal("1500")
        assert snapshot.total_invested == Decimal("1500")
        assert snapshot.total_return == Decimal("0")
        assert snapshot.total_units == Decimal("0")

    @pytest.mark.parametrize("investment_type", list(InvestmentType))
    def test_f_empty_ledger(self, engine, investment_type):
        snapshot = engine.recompute(investment_type, [], Quote(nav_per_unit=Decimal("12")))

        assert snapshot == ValuationSnapshot.empty()
        assert snapshot.transaction_count == 0


class TestEngineProperties:
    """Invariants that hold for any ledger."""

    def test_zero_net_invested_gives_zero_percentage(self, engine, fund_deposit):
        # Everything withdrawn again: net invested 0, no division
        withdrawal = LedgerEntry(TransactionType.WITHDRAWAL, Decimal("1000"), fund_deposit.details)

        snapshot = engine.recompute(
            InvestmentType.MUTUAL_FUND, [fund_deposit, withdrawal], Quote(nav_per_unit=Decimal("12"))
        )

        assert snapshot.total_invested == Decimal("0")
        assert snapshot.total_units == Decimal("0")
        assert snapshot.return_percentage == Decimal("0")

    def test_negative_net_invested_gives_zero_percentage(self, engine):
        entries = [
            LedgerEntry(TransactionType.DEPOSIT, Decimal("100")),
            LedgerEntry(TransactionType.WITHDRAWAL, Decimal("300")),
        ]

        snapshot = engine.recompute(InvestmentType.SAVINGS, entries)

        assert snapshot.total_invested == Decimal("-200")
        assert snapshot.return_percentage == Decimal("0")

    def test_recompute_is_idempotent(self, engine, fund_deposit):
        quote = Quote(nav_per_unit=Decimal("11.5"))

        first = engine.recompute(InvestmentType.MUTUAL_FUND, [fund_deposit], quote)
        second = engine.recompute(InvestmentType.MUTUAL_FUND, [fund_deposit], quote)

        assert first == second

    def test_result_is_independent_of_entry_order(self, engine):
        def entry(units: str, price: str, transaction_type=TransactionType.DEPOSIT) -> LedgerEntry:
            details = MutualFundDetails("KFSDIV", 1, Decimal(units), Decimal(price))
            return LedgerEntry(transaction_type, details.implied_amount, details)

        entries = [
            entry("100", "10"),
            entry("50", "11"),
            entry("30", "12", TransactionType.WITHDRAWAL),
            entry("12.5", "10.4"),
        ]
        quote = Quote(nav_per_unit=Decimal("12"))

        snapshots = {
            engine.recompute(InvestmentType.MUTUAL_FUND, list(order), quote)
            for order in permutations(entries)
        }

        assert len(snapshots) == 1
        (snapshot,) = snapshots
        # 100 + 50 - 30 + 12.5
        assert snapshot.total_units == Decimal("132.5")

    def test_units_not_tracked_for_cash_types(self, engine, fund_deposit):
        """A unit-bearing payload on a cooperative ledger contributes no units."""
        snapshot = engine.recompute(InvestmentType.COOPERATIVE, [fund_deposit])

        assert snapshot.total_units == Decimal("0")
        assert snapshot.current_value == Decimal("1000")
