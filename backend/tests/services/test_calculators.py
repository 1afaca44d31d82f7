# backend/tests/services/test_calculators.py
"""
Unit tests for valuation calculators.

These tests verify the pure calculation logic WITHOUT database dependencies.
Ledger entries and quotes are plain value objects.

Test Coverage:
- UnitAccumulator: Net units from deposits and withdrawals
- CashFlowCalculator: Deposits, withdrawals, net invested, count
- CurrentValueCalculator: NAV, price × FX, and at-cost fallbacks
- ReturnCalculator: Absolute return and the zero-investment guard
"""

from decimal import Decimal

import pytest

from portfolio_tracker.models import InvestmentType, TransactionType
from portfolio_tracker.services.valuation import (
    CashFlowCalculator,
    CooperativeDetails,
    CurrentValueCalculator,
    LedgerEntry,
    MutualFundDetails,
    Quote,
    ReturnCalculator,
    StockDetails,
    UnitAccumulator,
)


# =============================================================================
# HELPERS
# =============================================================================

def fund_entry(
        units: str,
        price: str,
        transaction_type: TransactionType = TransactionType.DEPOSIT,
) -> LedgerEntry:
    details = MutualFundDetails(
        fund_name="KFSDIV",
        installment_no=1,
        units_purchased=Decimal(units),
        price_per_unit=Decimal(price),
    )
    return LedgerEntry(transaction_type, details.implied_amount, details)


def cash_entry(amount: str, transaction_type: TransactionType = TransactionType.DEPOSIT) -> LedgerEntry:
    return LedgerEntry(transaction_type, Decimal(amount))


# =============================================================================
# UNIT ACCUMULATOR TESTS
# =============================================================================

class TestUnitAccumulator:
    """Tests for UnitAccumulator."""

    def test_empty_ledger_has_zero_units(self):
        assert UnitAccumulator().calculate([]) == Decimal("0")

    def test_deposits_add_units(self):
        entries = [fund_entry("100", "10"), fund_entry("50.5", "11")]

        assert UnitAccumulator().calculate(entries) == Decimal("150.5")

    def test_withdrawals_subtract_units(self):
        entries = [
            fund_entry("100", "10"),
            fund_entry("30", "12", TransactionType.WITHDRAWAL),
        ]

        assert UnitAccumulator().calculate(entries) == Decimal("70")

    def test_entries_without_units_are_ignored(self):
        """Cash-only entries and non-unit payloads don't move the unit count."""
        coop = CooperativeDetails(year=2024, period=1, month="January", total_invested_to_date=Decimal("500"))
        entries = [
            fund_entry("10", "10"),
            cash_entry("999"),
            LedgerEntry(TransactionType.DEPOSIT, Decimal("500"), coop),
        ]

        assert UnitAccumulator().calculate(entries) == Decimal("10")

    def test_stock_units(self):
        details = StockDetails(
            stock_name="VOO",
            installment_no=1,
            units_purchased=Decimal("2.5"),
            price_per_unit_usd=Decimal("400"),
            exchange_rate=Decimal("35"),
            purchase_value_thb=Decimal("35000"),
        )
        entries = [LedgerEntry(TransactionType.DEPOSIT, Decimal("35000"), details)]

        assert UnitAccumulator().calculate(entries) == Decimal("2.5")

    def test_can_go_negative(self):
        """Overdrawn units are reported as-is, not clamped."""
        entries = [fund_entry("5", "10", TransactionType.WITHDRAWAL)]

        assert UnitAccumulator().calculate(entries) == Decimal("-5")


# =============================================================================
# CASH FLOW CALCULATOR TESTS
# =============================================================================

class TestCashFlowCalculator:
    """Tests for CashFlowCalculator."""

    def test_empty_ledger(self):
        totals = CashFlowCalculator().calculate([])

        assert totals.total_deposits == Decimal("0")
        assert totals.total_withdrawals == Decimal("0")
        assert totals.net_invested == Decimal("0")
        assert totals.transaction_count == 0

    def test_deposits_and_withdrawals(self):
        entries = [
            cash_entry("1000"),
            cash_entry("500"),
            cash_entry("300", TransactionType.WITHDRAWAL),
        ]

        totals = CashFlowCalculator().calculate(entries)

        assert totals.total_deposits == Decimal("1500")
        assert totals.total_withdrawals == Decimal("300")
        assert totals.net_invested == Decimal("1200")
        assert totals.transaction_count == 3

    def test_accepts_a_generator(self):
        totals = CashFlowCalculator().calculate(cash_entry(a) for a in ("1", "2", "3"))

        assert totals.net_invested == Decimal("6")
        assert totals.transaction_count == 3

    def test_net_invested_can_be_negative(self):
        totals = CashFlowCalculator().calculate([
            cash_entry("100"),
            cash_entry("250", TransactionType.WITHDRAWAL),
        ])

        assert totals.net_invested == Decimal("-150")


# =============================================================================
# CURRENT VALUE CALCULATOR TESTS
# =============================================================================

class TestCurrentValueCalculator:
    """Tests for CurrentValueCalculator."""

    @pytest.fixture
    def calculator(self) -> CurrentValueCalculator:
        return CurrentValueCalculator()

    def test_mutual_fund_with_nav(self, calculator):
        value = calculator.calculate(
            InvestmentType.MUTUAL_FUND,
            total_units=Decimal("100"),
            net_invested=Decimal("1000"),
            quote=Quote(nav_per_unit=Decimal("12")),
        )

        assert value == Decimal("1200")

    def test_mutual_fund_without_nav_is_at_cost(self, calculator):
        value = calculator.calculate(
            InvestmentType.MUTUAL_FUND, Decimal("100"), Decimal("1000"), Quote()
        )

        assert value == Decimal("1000")

    def test_mutual_fund_zero_nav_is_at_cost(self, calculator):
        value = calculator.calculate(
            InvestmentType.MUTUAL_FUND, Decimal("100"), Decimal("1000"), Quote(nav_per_unit=Decimal("0"))
        )

        assert value == Decimal("1000")

    def test_stock_with_price_and_fx(self, calculator):
        value = calculator.calculate(
            InvestmentType.STOCK,
            total_units=Decimal("10"),
            net_invested=Decimal("35000"),
            quote=Quote(stock_price_usd=Decimal("110"), exchange_rate=Decimal("35")),
        )

        assert value == Decimal("38500")

    @pytest.mark.parametrize("price,fx", [
        (None, Decimal("35")),
        (Decimal("110"), None),
        (Decimal("0"), Decimal("35")),
        (Decimal("110"), Decimal("0")),
    ])
    def test_stock_with_incomplete_quote_is_at_cost(self, calculator, price, fx):
        value = calculator.calculate(
            InvestmentType.STOCK,
            Decimal("10"),
            Decimal("35000"),
            Quote(stock_price_usd=price, exchange_rate=fx),
        )

        assert value == Decimal("35000")

    @pytest.mark.parametrize("investment_type", [
        InvestmentType.COOPERATIVE,
        InvestmentType.PVD,
        InvestmentType.SAVINGS,
    ])
    def test_cash_types_are_at_cost_and_ignore_quotes(self, calculator, investment_type):
        """A stray quote on a cash-type portfolio is never read."""
        value = calculator.calculate(
            investment_type,
            Decimal("0"),
            Decimal("5000"),
            Quote(nav_per_unit=Decimal("99"), stock_price_usd=Decimal("1"), exchange_rate=Decimal("1")),
        )

        assert value == Decimal("5000")

    def test_unknown_type_raises(self, calculator):
        with pytest.raises(ValueError, match="Unsupported investment type"):
            calculator.calculate("bond", Decimal("0"), Decimal("0"), Quote())


# =============================================================================
# RETURN CALCULATOR TESTS
# =============================================================================

class TestReturnCalculator:
    """Tests for ReturnCalculator."""

    def test_gain(self):
        result = ReturnCalculator().calculate(Decimal("1200"), Decimal("1000"))

        assert result.total_return == Decimal("200")
        assert result.return_percentage == Decimal("20")

    def test_loss(self):
        result = ReturnCalculator().calculate(Decimal("900"), Decimal("1000"))

        assert result.total_return == Decimal("-100")
        assert result.return_percentage == Decimal("-10")

    def test_zero_invested_gives_zero_percentage(self):
        result = ReturnCalculator().calculate(Decimal("0"), Decimal("0"))

        assert result.total_return == Decimal("0")
        assert result.return_percentage == Decimal("0")

    def test_negative_invested_gives_zero_percentage(self):
        """Withdrawals beyond deposits: return is reported, percentage is 0."""
        result = ReturnCalculator().calculate(Decimal("-200"), Decimal("-200"))

        assert result.total_return == Decimal("0")
        assert result.return_percentage == Decimal("0")

    def test_no_rounding(self):
        result = ReturnCalculator().calculate(Decimal("1000"), Decimal("3"))

        assert result.return_percentage == (Decimal("997") / Decimal("3")) * Decimal("100")
