# backend/portfolio_tracker/services/valuation/service.py
"""
Recalculation Service - the single entry point for refreshing a snapshot.

Every ledger mutation and every quote update calls recompute() before it
commits. The service:
    1. locks the portfolio row
    2. reads the full ledger and the current quote
    3. runs the ValuationEngine
    4. writes the snapshot back (version-checked)

It only flushes. The caller owns the unit of work and commits the mutation
and the new snapshot together, or rolls both back.

Design Principles:
- Full rescan on every call; no incremental state to drift
- No HTTP Knowledge: raises domain exceptions, not HTTPException
- Stores injectable for testing

Usage:
    from portfolio_tracker.services.valuation import RecalculationService

    service = RecalculationService()
    snapshot = service.recompute(db, portfolio_id=1)
    db.commit()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import InvalidOperation

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from portfolio_tracker.services.exceptions import (
    ConcurrentModificationError,
    PortfolioNotFoundError,
    RecalculationError,
)
from portfolio_tracker.services.protocols import (
    LedgerStoreProtocol,
    PortfolioStoreProtocol,
)
from portfolio_tracker.services.stores import SqlLedgerStore, SqlPortfolioStore
from portfolio_tracker.services.valuation.engine import ValuationEngine
from portfolio_tracker.services.valuation.types import (
    LedgerEntry,
    Quote,
    ValuationSnapshot,
)

logger = logging.getLogger(__name__)


class RecalculationService:
    """
    Recomputes and persists a portfolio's valuation snapshot.

    Attributes:
        _engine: Pure valuation engine
        _ledger_store_factory: Builds a ledger store for a session
        _portfolio_store_factory: Builds a portfolio store for a session
    """

    def __init__(
            self,
            engine: ValuationEngine | None = None,
            ledger_store_factory: Callable[[Session], LedgerStoreProtocol] = SqlLedgerStore,
            portfolio_store_factory: Callable[[Session], PortfolioStoreProtocol] = SqlPortfolioStore,
    ) -> None:
        self._engine = engine or ValuationEngine()
        self._ledger_store_factory = ledger_store_factory
        self._portfolio_store_factory = portfolio_store_factory

    def recompute(self, db: Session, portfolio_id: int) -> ValuationSnapshot:
        """
        Recompute the snapshot of one portfolio and write it back.

        Args:
            db: Session holding the caller's unit of work
            portfolio_id: Portfolio to refresh

        Returns:
            The snapshot that was written

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            ConcurrentModificationError: If another writer updated the
                portfolio between our read and our write
            RecalculationError: If the stored ledger cannot be valued
        """
        portfolios = self._portfolio_store_factory(db)
        ledger = self._ledger_store_factory(db)

        portfolio = portfolios.read_portfolio(portfolio_id, lock=True)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)

        try:
            entries = [LedgerEntry.from_transaction(t) for t in ledger.list_transactions(portfolio_id)]
        except (KeyError, ValueError, InvalidOperation) as e:
            logger.error(f"Unreadable transaction details in portfolio {portfolio_id}: {e}")
            raise RecalculationError(
                portfolio_id,
                f"Portfolio {portfolio_id} has a transaction with unreadable details",
            ) from e

        snapshot = self._engine.recompute(
            portfolio.investment_type,
            entries,
            Quote.from_portfolio(portfolio),
        )

        try:
            portfolios.write_snapshot(portfolio, snapshot)
        except StaleDataError as e:
            logger.warning(f"Lost snapshot write race on portfolio {portfolio_id}")
            raise ConcurrentModificationError(portfolio_id) from e

        logger.info(
            f"Snapshot written for portfolio {portfolio_id}: "
            f"value={snapshot.current_value}, invested={snapshot.total_invested}, "
            f"transactions={snapshot.transaction_count}"
        )
        return snapshot
