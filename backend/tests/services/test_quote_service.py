# backend/tests/services/test_quote_service.py
"""
Tests for QuoteService.

A quote update stores the latest NAV (or price + FX) on the portfolio and
revalues it in the same commit.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from portfolio_tracker.models import TransactionType
from portfolio_tracker.services.exceptions import (
    ConcurrentModificationError,
    NonPositiveValueError,
    PortfolioNotFoundError,
    QuoteNotApplicableError,
)
from portfolio_tracker.services.ledger import LedgerService
from portfolio_tracker.services.quotes import QuoteService
from portfolio_tracker.services.valuation import (
    MutualFundDetails,
    RecalculationService,
    StockDetails,
)


@pytest.fixture
def service() -> QuoteService:
    return QuoteService()


@pytest.fixture
def funded_portfolio(db, fund_portfolio):
    """Mutual fund with 100 units bought at 10 (1,000 THB invested)."""
    LedgerService().create_transaction(
        db,
        fund_portfolio.id,
        TransactionType.DEPOSIT,
        date(2024, 1, 15),
        details=MutualFundDetails("KFSDIV", 1, Decimal("100"), Decimal("10")),
    )
    return fund_portfolio


@pytest.fixture
def funded_stock(db, stock_portfolio):
    """10 shares at 175.50 USD with 35.20 THB/USD (61,776 THB invested)."""
    LedgerService().create_transaction(
        db,
        stock_portfolio.id,
        TransactionType.DEPOSIT,
        date(2024, 1, 15),
        details=StockDetails(
            stock_name="AAPL",
            installment_no=1,
            units_purchased=Decimal("10"),
            price_per_unit_usd=Decimal("175.50"),
            exchange_rate=Decimal("35.20"),
            purchase_value_thb=Decimal("61776"),
        ),
    )
    return stock_portfolio


class TestUpdateNav:
    """Tests for QuoteService.update_nav."""

    def test_nav_revalues_portfolio(self, db, service, funded_portfolio):
        portfolio = service.update_nav(db, funded_portfolio.id, Decimal("12"))

        assert portfolio.current_nav_per_unit == Decimal("12")
        assert portfolio.quote_updated_at is not None
        assert portfolio.current_value == Decimal("1200")
        assert portfolio.total_return == Decimal("200")
        assert portfolio.return_percentage == Decimal("20")

    def test_latest_nav_wins(self, db, service, funded_portfolio):
        service.update_nav(db, funded_portfolio.id, Decimal("12"))
        portfolio = service.update_nav(db, funded_portfolio.id, Decimal("9"))

        assert portfolio.current_value == Decimal("900")
        assert portfolio.total_return == Decimal("-100")

    def test_nav_on_empty_portfolio(self, db, service, fund_portfolio):
        portfolio = service.update_nav(db, fund_portfolio.id, Decimal("12"))

        assert portfolio.current_value == Decimal("0")
        assert portfolio.transaction_count == 0

    @pytest.mark.parametrize("nav", [Decimal("0"), Decimal("-3")])
    def test_rejects_non_positive_nav(self, db, service, funded_portfolio, nav):
        with pytest.raises(NonPositiveValueError) as exc_info:
            service.update_nav(db, funded_portfolio.id, nav)

        assert exc_info.value.field == "nav_per_unit"

    def test_rejects_non_fund_portfolio(self, db, service, stock_portfolio):
        with pytest.raises(QuoteNotApplicableError) as exc_info:
            service.update_nav(db, stock_portfolio.id, Decimal("12"))

        assert exc_info.value.investment_type == "stock"

    def test_missing_portfolio(self, db, service):
        with pytest.raises(PortfolioNotFoundError):
            service.update_nav(db, 999, Decimal("12"))

    def test_quote_rolled_back_when_recompute_fails(self, db, funded_portfolio):
        recalculation = MagicMock(spec=RecalculationService)
        recalculation.recompute.side_effect = ConcurrentModificationError(funded_portfolio.id)
        service = QuoteService(recalculation_service=recalculation)

        with pytest.raises(ConcurrentModificationError):
            service.update_nav(db, funded_portfolio.id, Decimal("12"))

        db.refresh(funded_portfolio)
        assert funded_portfolio.current_nav_per_unit is None
        assert funded_portfolio.current_value == Decimal("1000")


class TestUpdateStockPrice:
    """Tests for QuoteService.update_stock_price."""

    def test_price_and_fx_revalue_portfolio(self, db, service, funded_stock):
        # 10 × 184.70 × 35.00 = 64,645
        portfolio = service.update_stock_price(
            db, funded_stock.id, Decimal("184.70"), Decimal("35.00")
        )

        assert portfolio.current_stock_price_usd == Decimal("184.70")
        assert portfolio.current_exchange_rate == Decimal("35.00")
        assert portfolio.current_value == Decimal("64645")
        assert portfolio.total_return == Decimal("2869")

    @pytest.mark.parametrize("price,fx,field", [
        (Decimal("0"), Decimal("35"), "price_usd"),
        (Decimal("100"), Decimal("0"), "exchange_rate"),
    ])
    def test_rejects_non_positive_values(self, db, service, funded_stock, price, fx, field):
        with pytest.raises(NonPositiveValueError) as exc_info:
            service.update_stock_price(db, funded_stock.id, price, fx)

        assert exc_info.value.field == field

    def test_rejects_non_stock_portfolio(self, db, service, savings_portfolio):
        with pytest.raises(QuoteNotApplicableError):
            service.update_stock_price(db, savings_portfolio.id, Decimal("100"), Decimal("35"))
