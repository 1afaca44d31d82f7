# backend/portfolio_tracker/services/quotes.py
"""
Quote Service for user-entered market prices.

Only the latest quote is kept, on the portfolio itself:
- mutual funds: NAV per unit
- stocks: price per share in USD and the THB/USD exchange rate

Setting a quote revalues the portfolio in the same commit.

Usage:
    from portfolio_tracker.services.quotes import QuoteService

    service = QuoteService()
    service.update_nav(db, portfolio_id=1, nav_per_unit=Decimal("12.00"))
    service.update_stock_price(db, portfolio_id=2, price_usd=Decimal("110"), exchange_rate=Decimal("35"))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from sqlalchemy.orm import Session

from portfolio_tracker.models import InvestmentType, Portfolio
from portfolio_tracker.services.constants import ZERO
from portfolio_tracker.services.exceptions import (
    NonPositiveValueError,
    PortfolioNotFoundError,
    QuoteNotApplicableError,
)
from portfolio_tracker.services.protocols import PortfolioStoreProtocol
from portfolio_tracker.services.stores import SqlPortfolioStore
from portfolio_tracker.services.valuation import RecalculationService

logger = logging.getLogger(__name__)


class QuoteService:
    """Writes the latest quote of a portfolio and triggers its recompute."""

    def __init__(
            self,
            recalculation_service: RecalculationService | None = None,
            portfolio_store_factory: Callable[[Session], PortfolioStoreProtocol] = SqlPortfolioStore,
    ) -> None:
        self._recalculation = recalculation_service or RecalculationService(
            portfolio_store_factory=portfolio_store_factory,
        )
        self._portfolio_store_factory = portfolio_store_factory

    def update_nav(self, db: Session, portfolio_id: int, nav_per_unit: Decimal) -> Portfolio:
        """
        Set the NAV per unit of a mutual fund portfolio.

        Returns:
            The revalued portfolio

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            QuoteNotApplicableError: If it is not a mutual fund portfolio
            NonPositiveValueError: If nav_per_unit <= 0
        """
        if nav_per_unit <= ZERO:
            raise NonPositiveValueError("nav_per_unit", nav_per_unit)

        return self._write_and_recompute(
            db,
            portfolio_id,
            InvestmentType.MUTUAL_FUND,
            "NAV",
            nav_per_unit=nav_per_unit,
        )

    def update_stock_price(
            self,
            db: Session,
            portfolio_id: int,
            price_usd: Decimal,
            exchange_rate: Decimal,
    ) -> Portfolio:
        """
        Set the USD price and THB/USD rate of a stock portfolio.

        Returns:
            The revalued portfolio

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            QuoteNotApplicableError: If it is not a stock portfolio
            NonPositiveValueError: If price or rate <= 0
        """
        if price_usd <= ZERO:
            raise NonPositiveValueError("price_usd", price_usd)
        if exchange_rate <= ZERO:
            raise NonPositiveValueError("exchange_rate", exchange_rate)

        return self._write_and_recompute(
            db,
            portfolio_id,
            InvestmentType.STOCK,
            "stock price",
            stock_price_usd=price_usd,
            exchange_rate=exchange_rate,
        )

    def _write_and_recompute(
            self,
            db: Session,
            portfolio_id: int,
            expected_type: InvestmentType,
            quote_kind: str,
            **quote_fields: Decimal,
    ) -> Portfolio:
        store = self._portfolio_store_factory(db)
        portfolio = store.read_portfolio(portfolio_id, lock=True)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        if portfolio.investment_type != expected_type:
            raise QuoteNotApplicableError(quote_kind, portfolio.investment_type.value)

        try:
            store.write_quote(portfolio, **quote_fields)
            self._recalculation.recompute(db, portfolio_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(portfolio)
        logger.info(
            f"Updated {quote_kind} of portfolio {portfolio_id}: "
            + ", ".join(f"{k}={v}" for k, v in quote_fields.items())
        )
        return portfolio
