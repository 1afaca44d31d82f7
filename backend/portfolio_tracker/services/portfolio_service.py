# backend/portfolio_tracker/services/portfolio_service.py
"""
Portfolio Service for portfolio CRUD and cross-portfolio totals.

This service handles:
- Creating portfolios (with an all-zero valuation snapshot)
- Reading, listing, renaming and deleting portfolios
- Explicit recalculation of one portfolio
- Summarizing every portfolio of a user, overall and per investment type

The snapshot columns are never written here; they belong to
RecalculationService.

Usage:
    from portfolio_tracker.services.portfolio_service import PortfolioService

    service = PortfolioService()
    portfolio = service.create_portfolio(
        db, user_id="user-1", name="KFSDIV", investment_type=InvestmentType.MUTUAL_FUND
    )
    summary = service.get_user_summary(db, user_id="user-1")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from portfolio_tracker.models import InvestmentType, Portfolio
from portfolio_tracker.services.constants import DEFAULT_LIST_LIMIT, ZERO
from portfolio_tracker.services.exceptions import PortfolioNotFoundError, ValidationError
from portfolio_tracker.services.valuation import (
    RecalculationService,
    ReturnCalculator,
    ValuationSnapshot,
)

logger = logging.getLogger(__name__)

# investment_type is fixed at creation, user_id is fixed for life
UPDATABLE_FIELDS = frozenset({"name", "target_amount", "description", "color"})


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class InvestmentTypeTotals:
    """Totals of a user's portfolios of one investment type."""

    investment_type: InvestmentType
    portfolio_count: int = 0
    current_value: Decimal = ZERO
    total_invested: Decimal = ZERO
    total_return: Decimal = ZERO


@dataclass
class PortfolioSummary:
    """
    Totals across every portfolio of a user.

    return_percentage follows the same rule as a single portfolio:
    0 when nothing (or a negative amount) is invested overall.
    """

    user_id: str
    total_value: Decimal
    total_invested: Decimal
    total_return: Decimal
    return_percentage: Decimal
    transaction_count: int
    portfolio_count: int
    by_type: list[InvestmentTypeTotals] = field(default_factory=list)


# =============================================================================
# SERVICE
# =============================================================================

class PortfolioService:
    """Portfolio CRUD plus the user-level summary."""

    def __init__(self, recalculation_service: RecalculationService | None = None) -> None:
        self._recalculation = recalculation_service or RecalculationService()
        self._returns = ReturnCalculator()

    def create_portfolio(
            self,
            db: Session,
            user_id: str,
            name: str,
            investment_type: InvestmentType,
            target_amount: Decimal | None = None,
            description: str | None = None,
            color: str | None = None,
    ) -> Portfolio:
        """Create an empty portfolio. Its snapshot starts at zero."""
        empty = ValuationSnapshot.empty()
        portfolio = Portfolio(
            user_id=user_id,
            name=name,
            investment_type=InvestmentType(investment_type),
            target_amount=target_amount,
            description=description,
            color=color,
            current_value=empty.current_value,
            total_invested=empty.total_invested,
            total_return=empty.total_return,
            return_percentage=empty.return_percentage,
            transaction_count=empty.transaction_count,
            total_units=empty.total_units,
        )

        db.add(portfolio)
        db.commit()
        db.refresh(portfolio)

        logger.info(
            f"Created {portfolio.investment_type.value} portfolio {portfolio.id} "
            f"'{portfolio.name}' for user {user_id}"
        )
        return portfolio

    def get_portfolio(self, db: Session, portfolio_id: int) -> Portfolio:
        """
        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
        """
        portfolio = db.get(Portfolio, portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    def list_portfolios(
            self,
            db: Session,
            user_id: str | None = None,
            investment_type: InvestmentType | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> tuple[list[Portfolio], int]:
        """
        List portfolios, newest first.

        Returns:
            (page of portfolios, total matching count)
        """
        query = select(Portfolio)

        if user_id is not None:
            query = query.where(Portfolio.user_id == user_id)
        if investment_type is not None:
            query = query.where(Portfolio.investment_type == investment_type)

        count_query = select(func.count()).select_from(query.subquery())
        total = db.scalar(count_query) or 0

        query = query.order_by(Portfolio.created_at.desc(), Portfolio.id.desc())
        portfolios = db.scalars(query.offset(skip).limit(limit)).all()
        return list(portfolios), total

    def update_portfolio(
            self,
            db: Session,
            portfolio_id: int,
            changes: dict[str, Any],
    ) -> Portfolio:
        """
        Partial update of the descriptive fields.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            ValidationError: If changes touch investment_type, user_id or
                any valuation field
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )

        portfolio = self.get_portfolio(db, portfolio_id)
        for name, value in changes.items():
            setattr(portfolio, name, value)

        db.commit()
        db.refresh(portfolio)

        logger.info(f"Updated portfolio {portfolio_id}: {sorted(changes)}")
        return portfolio

    def delete_portfolio(self, db: Session, portfolio_id: int) -> None:
        """
        Delete a portfolio and, by cascade, all of its transactions.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
        """
        portfolio = self.get_portfolio(db, portfolio_id)
        db.delete(portfolio)
        db.commit()
        logger.info(f"Deleted portfolio {portfolio_id}")

    def recalculate(self, db: Session, portfolio_id: int) -> Portfolio:
        """
        Recompute and store the snapshot of one portfolio on demand.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            ConcurrentModificationError: If the snapshot write lost a race
        """
        try:
            self._recalculation.recompute(db, portfolio_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        return self.get_portfolio(db, portfolio_id)

    def get_user_summary(self, db: Session, user_id: str) -> PortfolioSummary:
        """
        Sum the stored snapshots of every portfolio a user owns.

        A user without portfolios gets an all-zero summary.
        """
        portfolios = db.scalars(
            select(Portfolio).where(Portfolio.user_id == user_id).order_by(Portfolio.id)
        ).all()

        total_value = ZERO
        total_invested = ZERO
        transaction_count = 0
        by_type: dict[InvestmentType, InvestmentTypeTotals] = {}

        for portfolio in portfolios:
            value = Decimal(portfolio.current_value)
            invested = Decimal(portfolio.total_invested)

            total_value += value
            total_invested += invested
            transaction_count += portfolio.transaction_count

            totals = by_type.setdefault(
                portfolio.investment_type,
                InvestmentTypeTotals(investment_type=portfolio.investment_type),
            )
            totals.portfolio_count += 1
            totals.current_value += value
            totals.total_invested += invested
            totals.total_return += value - invested

        returns = self._returns.calculate(total_value, total_invested)

        return PortfolioSummary(
            user_id=user_id,
            total_value=total_value,
            total_invested=total_invested,
            total_return=returns.total_return,
            return_percentage=returns.return_percentage,
            transaction_count=transaction_count,
            portfolio_count=len(portfolios),
            by_type=[by_type[t] for t in InvestmentType if t in by_type],
        )
