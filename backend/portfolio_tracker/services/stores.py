# backend/portfolio_tracker/services/stores.py
"""
SQLAlchemy implementations of the ledger and portfolio stores.

Both stores are bound to the caller's Session and only flush; committing
(or rolling back) the unit of work is left to the service that owns it, so
a ledger write and the snapshot it triggers land in the same commit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_tracker.models import Portfolio, Transaction

if TYPE_CHECKING:
    from portfolio_tracker.services.valuation.types import ValuationSnapshot

logger = logging.getLogger(__name__)


class SqlLedgerStore:
    """Transaction rows of the ledger."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def list_transactions(self, portfolio_id: int) -> list[Transaction]:
        """Every transaction of a portfolio, oldest first."""
        query = (
            select(Transaction)
            .where(Transaction.portfolio_id == portfolio_id)
            .order_by(Transaction.date, Transaction.id)
        )
        return list(self._db.scalars(query).all())

    def get(self, transaction_id: int) -> Transaction | None:
        return self._db.get(Transaction, transaction_id)

    def insert(self, transaction: Transaction) -> Transaction:
        self._db.add(transaction)
        self._db.flush()
        return transaction

    def update(self, transaction: Transaction, fields: dict[str, Any]) -> Transaction:
        for name, value in fields.items():
            setattr(transaction, name, value)
        self._db.flush()
        return transaction

    def delete(self, transaction: Transaction) -> None:
        self._db.delete(transaction)
        self._db.flush()


class SqlPortfolioStore:
    """Portfolio rows: lockable reads plus the two write paths the engine owns."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def read_portfolio(self, portfolio_id: int, lock: bool = False) -> Portfolio | None:
        """
        Load a portfolio.

        With lock=True the row is read with SELECT ... FOR UPDATE and any
        copy already in the session is refreshed, so the version counter
        seen by the next write is the committed one. SQLite ignores the lock.
        """
        if not lock:
            return self._db.get(Portfolio, portfolio_id)

        query = (
            select(Portfolio)
            .where(Portfolio.id == portfolio_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._db.scalars(query).first()

    def write_snapshot(
            self,
            portfolio: Portfolio,
            snapshot: ValuationSnapshot,
            written_at: datetime | None = None,
    ) -> None:
        """
        Replace the whole valuation snapshot.

        Raises:
            sqlalchemy.orm.exc.StaleDataError: If the row's version moved
                since it was read (another writer got there first)
        """
        portfolio.current_value = snapshot.current_value
        portfolio.total_invested = snapshot.total_invested
        portfolio.total_return = snapshot.total_return
        portfolio.return_percentage = snapshot.return_percentage
        portfolio.transaction_count = snapshot.transaction_count
        portfolio.total_units = snapshot.total_units
        portfolio.snapshot_updated_at = written_at or datetime.now(timezone.utc)
        self._db.flush()

    def write_quote(
            self,
            portfolio: Portfolio,
            nav_per_unit: Decimal | None = None,
            stock_price_usd: Decimal | None = None,
            exchange_rate: Decimal | None = None,
    ) -> None:
        """Overwrite the latest quote. Fields passed as None are left unchanged."""
        if nav_per_unit is not None:
            portfolio.current_nav_per_unit = nav_per_unit
        if stock_price_usd is not None:
            portfolio.current_stock_price_usd = stock_price_usd
        if exchange_rate is not None:
            portfolio.current_exchange_rate = exchange_rate
        portfolio.quote_updated_at = datetime.now(timezone.utc)
        self._db.flush()
