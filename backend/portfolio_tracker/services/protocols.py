# backend/portfolio_tracker/services/protocols.py
"""
Protocol interfaces for the persistence seams.

Using typing.Protocol enables structural subtyping:
- The SQLAlchemy stores satisfy these without inheriting from them
- Test doubles (in-memory lists) work the same way
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_tracker.models import Portfolio, Transaction
    from portfolio_tracker.services.valuation.types import ValuationSnapshot


class LedgerStoreProtocol(Protocol):
    """Transaction storage used by LedgerService and RecalculationService."""

    def list_transactions(self, portfolio_id: int) -> list[Transaction]:
        ...

    def get(self, transaction_id: int) -> Transaction | None:
        ...

    def insert(self, transaction: Transaction) -> Transaction:
        ...

    def update(self, transaction: Transaction, fields: dict[str, Any]) -> Transaction:
        ...

    def delete(self, transaction: Transaction) -> None:
        ...


class PortfolioStoreProtocol(Protocol):
    """Portfolio storage: reads, snapshot write-back and quote writes."""

    def read_portfolio(self, portfolio_id: int, lock: bool = False) -> Portfolio | None:
        ...

    def write_snapshot(
            self,
            portfolio: Portfolio,
            snapshot: ValuationSnapshot,
            written_at: datetime | None = None,
    ) -> None:
        ...

    def write_quote(
            self,
            portfolio: Portfolio,
            nav_per_unit: Decimal | None = None,
            stock_price_usd: Decimal | None = None,
            exchange_rate: Decimal | None = None,
    ) -> None:
        ...
