# backend/portfolio_tracker/services/ledger.py
"""
Ledger Service for recording deposits and withdrawals.

This service handles:
- Creating, updating and deleting transactions of one portfolio
- Validating the detail payload against the portfolio's investment type
- Deriving/checking amount from units × price for mutual funds and stocks
- Reads: single transaction, filtered listing, statistics
- Reports: PVD yearly contribution summary, add-entry form defaults

Every mutation is followed by RecalculationService.recompute() inside the
same unit of work. The mutation and the new snapshot are committed together;
if anything fails both are rolled back.

Design Principles:
- Validation at the ledger boundary: non-positive values and mismatched
  payloads never reach the database
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- NotFound is raised before any write or recompute

Usage:
    from portfolio_tracker.services.ledger import LedgerService

    service = LedgerService()
    transaction = service.create_transaction(
        db,
        portfolio_id=1,
        transaction_type=TransactionType.DEPOSIT,
        transaction_date=date(2024, 1, 15),
        details=MutualFundDetails("KFSDIV", 1, Decimal("100"), Decimal("10")),
    )
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from portfolio_tracker.config import settings
from portfolio_tracker.models import InvestmentType, Portfolio, Transaction, TransactionType
from portfolio_tracker.services.constants import DEFAULT_LIST_LIMIT, FIRST_INSTALLMENT_NO, ZERO
from portfolio_tracker.services.exceptions import (
    AmountMismatchError,
    DetailTypeMismatchError,
    NonPositiveValueError,
    PortfolioNotFoundError,
    RecalculationError,
    TransactionNotFoundError,
    ValidationError,
)
from portfolio_tracker.services.protocols import LedgerStoreProtocol, PortfolioStoreProtocol
from portfolio_tracker.services.stores import SqlLedgerStore, SqlPortfolioStore
from portfolio_tracker.services.valuation import (
    CashFlowCalculator,
    CashFlowTotals,
    LedgerEntry,
    MutualFundDetails,
    PVDDetails,
    RecalculationService,
    StockDetails,
    TransactionDetails,
    details_from_dict,
    details_to_dict,
)
from portfolio_tracker.utils.date_utils import to_ledger_date

logger = logging.getLogger(__name__)

# Fields a partial update may touch; portfolio_id is fixed for life
UPDATABLE_FIELDS = frozenset({"transaction_type", "amount", "date", "notes", "details"})


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class PVDYearSummary:
    """
    Provident fund contributions for one calendar year.

    Attributes:
        year: The year summarized
        entries: PVD transactions of that year, ordered by period
        total_employee_contribution: Σ employee contributions
        total_employer_contribution: Σ employer contributions
        available_years: Every year with PVD entries, newest first
    """

    year: int
    entries: list[Transaction]
    total_employee_contribution: Decimal
    total_employer_contribution: Decimal
    available_years: list[int] = field(default_factory=list)

    @property
    def total_contribution(self) -> Decimal:
        return self.total_employee_contribution + self.total_employer_contribution


@dataclass
class EntryDefaults:
    """Pre-fill values for the next transaction of a portfolio."""

    investment_type: InvestmentType
    next_installment_no: int
    fund_names: list[str] = field(default_factory=list)
    stock_names: list[str] = field(default_factory=list)


# =============================================================================
# SERVICE
# =============================================================================

class LedgerService:
    """
    Service for the transaction ledger of each portfolio.

    Attributes:
        _recalculation: Refreshes the snapshot after each mutation
        _amount_tolerance: Allowed drift between amount and units × price
    """

    def __init__(
            self,
            recalculation_service: RecalculationService | None = None,
            ledger_store_factory: Callable[[Session], LedgerStoreProtocol] = SqlLedgerStore,
            portfolio_store_factory: Callable[[Session], PortfolioStoreProtocol] = SqlPortfolioStore,
            amount_tolerance: Decimal | None = None,
    ) -> None:
        self._recalculation = recalculation_service or RecalculationService(
            ledger_store_factory=ledger_store_factory,
            portfolio_store_factory=portfolio_store_factory,
        )
        self._ledger_store_factory = ledger_store_factory
        self._portfolio_store_factory = portfolio_store_factory
        self._amount_tolerance = (
            amount_tolerance if amount_tolerance is not None else settings.amount_tolerance
        )
        self._cash_flow = CashFlowCalculator()

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create_transaction(
            self,
            db: Session,
            portfolio_id: int,
            transaction_type: TransactionType,
            transaction_date: date | datetime | str,
            amount: Decimal | None = None,
            notes: str | None = None,
            details: TransactionDetails | None = None,
    ) -> Transaction:
        """
        Record a deposit or withdrawal and refresh the portfolio snapshot.

        For mutual fund and stock payloads the amount may be omitted; it is
        then derived from units × price (× FX rate). If it is given it must
        agree with the payload within the configured tolerance.

        Args:
            db: Database session
            portfolio_id: Portfolio to record against
            transaction_type: Deposit or withdrawal
            transaction_date: Date, datetime or ISO string (stored as a date)
            amount: Positive amount in settlement currency
            notes: Free text
            details: Type-specific payload tagged with the portfolio's type

        Returns:
            The committed transaction

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            DetailTypeMismatchError: If details belong to another investment type
            NonPositiveValueError: If amount, units, price or FX rate is <= 0
            AmountMismatchError: If amount disagrees with the payload
            ValidationError: If the date is not a date or ISO-8601 string
            ConcurrentModificationError: If the snapshot write lost a race
        """
        portfolio = self._get_portfolio(db, portfolio_id)
        resolved_amount = self._validate_entry(portfolio, amount, details)

        transaction = Transaction(
            portfolio_id=portfolio_id,
            transaction_type=TransactionType(transaction_type),
            amount=resolved_amount,
            date=_coerce_date(transaction_date),
            notes=notes,
            details=details_to_dict(details) if details is not None else None,
        )

        try:
            self._ledger_store_factory(db).insert(transaction)
            self._recalculation.recompute(db, portfolio_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(transaction)
        logger.info(
            f"Recorded {transaction.transaction_type.value} of {transaction.amount} "
            f"{settings.settlement_currency} in portfolio {portfolio_id} "
            f"(transaction {transaction.id})"
        )
        return transaction

    def update_transaction(
            self,
            db: Session,
            transaction_id: int,
            changes: dict[str, Any],
            portfolio_id: int | None = None,
    ) -> Transaction:
        """
        Apply a partial update and refresh the portfolio snapshot.

        Only keys present in ``changes`` are touched. The merged transaction
        is validated as a whole. When new unit-priced details arrive without
        an amount, the amount is re-derived from them.

        Args:
            db: Database session
            transaction_id: Transaction to update
            changes: Subset of transaction_type, amount, date, notes, details
                (details as a TransactionDetails value or None to clear)
            portfolio_id: If given, the transaction must belong to it

        Returns:
            The committed transaction

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist (in that portfolio)
            ValidationError: If changes name a field that cannot be updated,
                or the merged transaction is invalid
            RecalculationError: If the stored payload cannot be decoded
            ConcurrentModificationError: If the snapshot write lost a race
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )

        transaction = self._get_scoped_transaction(db, transaction_id, portfolio_id)
        portfolio = self._get_portfolio(db, transaction.portfolio_id)

        if "details" in changes:
            details = changes["details"]
        else:
            details = _stored_details(transaction)

        if "amount" in changes:
            amount = changes["amount"]
        elif "details" in changes and isinstance(details, (MutualFundDetails, StockDetails)):
            amount = None
        else:
            amount = transaction.amount

        resolved_amount = self._validate_entry(portfolio, amount, details)

        fields: dict[str, Any] = {"amount": resolved_amount}
        if "transaction_type" in changes:
            fields["transaction_type"] = TransactionType(changes["transaction_type"])
        if "date" in changes:
            fields["date"] = _coerce_date(changes["date"])
        if "notes" in changes:
            fields["notes"] = changes["notes"]
        if "details" in changes:
            fields["details"] = details_to_dict(details) if details is not None else None

        try:
            self._ledger_store_factory(db).update(transaction, fields)
            self._recalculation.recompute(db, transaction.portfolio_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(transaction)
        logger.info(
            f"Updated transaction {transaction_id} in portfolio {transaction.portfolio_id}: "
            f"{sorted(changes)}"
        )
        return transaction

    def delete_transaction(
            self,
            db: Session,
            transaction_id: int,
            portfolio_id: int | None = None,
    ) -> int:
        """
        Delete a transaction and refresh the portfolio snapshot.

        Returns:
            The id of the portfolio the transaction belonged to

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist (in that portfolio)
            ConcurrentModificationError: If the snapshot write lost a race
        """
        transaction = self._get_scoped_transaction(db, transaction_id, portfolio_id)
        owner_id = transaction.portfolio_id

        try:
            self._ledger_store_factory(db).delete(transaction)
            self._recalculation.recompute(db, owner_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Deleted transaction {transaction_id} from portfolio {owner_id}")
        return owner_id

    # =========================================================================
    # READS
    # =========================================================================

    def get_transaction(
            self,
            db: Session,
            transaction_id: int,
            portfolio_id: int | None = None,
    ) -> Transaction:
        """
        Raises:
            TransactionNotFoundError: If the transaction doesn't exist (in that portfolio)
        """
        return self._get_scoped_transaction(db, transaction_id, portfolio_id)

    def list_transactions(
            self,
            db: Session,
            portfolio_id: int | None = None,
            user_id: str | None = None,
            transaction_type: TransactionType | None = None,
            start_date: date | None = None,
            end_date: date | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> tuple[list[Transaction], int]:
        """
        List transactions, newest first.

        Args:
            portfolio_id: Restrict to one portfolio (must exist)
            user_id: Restrict to portfolios owned by this user
            transaction_type: Only deposits or only withdrawals
            start_date: Inclusive lower bound on the transaction date
            end_date: Inclusive upper bound on the transaction date
            skip: Offset
            limit: Page size

        Returns:
            (page of transactions, total matching count)

        Raises:
            PortfolioNotFoundError: If portfolio_id is given and doesn't exist
        """
        query = select(Transaction)

        if portfolio_id is not None:
            self._get_portfolio(db, portfolio_id)
            query = query.where(Transaction.portfolio_id == portfolio_id)
        if user_id is not None:
            query = query.join(Portfolio, Transaction.portfolio_id == Portfolio.id).where(
                Portfolio.user_id == user_id
            )
        if transaction_type is not None:
            query = query.where(Transaction.transaction_type == transaction_type)
        if start_date is not None:
            query = query.where(Transaction.date >= start_date)
        if end_date is not None:
            query = query.where(Transaction.date <= end_date)

        count_query = select(func.count()).select_from(query.subquery())
        total = db.scalar(count_query) or 0

        query = query.order_by(Transaction.date.desc(), Transaction.id.desc()).offset(skip).limit(limit)
        return list(db.scalars(query).all()), total

    def get_stats(self, db: Session, portfolio_id: int) -> CashFlowTotals:
        """
        Deposits, withdrawals, net invested and count for a portfolio.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
        """
        self._get_portfolio(db, portfolio_id)
        transactions = self._ledger_store_factory(db).list_transactions(portfolio_id)
        return self._cash_flow.calculate(
            LedgerEntry(transaction_type=t.transaction_type, amount=Decimal(t.amount))
            for t in transactions
        )

    # =========================================================================
    # REPORTS
    # =========================================================================

    def get_pvd_summary(
            self,
            db: Session,
            portfolio_id: int,
            year: int | None = None,
    ) -> PVDYearSummary:
        """
        Provident fund contributions for one year.

        Args:
            portfolio_id: A PVD portfolio
            year: Year to summarize; defaults to the latest year with entries,
                or the current year if there are none

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            ValidationError: If the portfolio is not a PVD portfolio
            RecalculationError: If a stored payload cannot be decoded
        """
        portfolio = self._get_portfolio(db, portfolio_id)
        if portfolio.investment_type != InvestmentType.PVD:
            raise ValidationError(
                f"Portfolio {portfolio_id} is not a provident fund portfolio",
                field="investment_type",
            )

        rows: list[tuple[Transaction, PVDDetails]] = []
        for transaction in self._ledger_store_factory(db).list_transactions(portfolio_id):
            details = _stored_details(transaction)
            if isinstance(details, PVDDetails):
                rows.append((transaction, details))

        available_years = sorted({d.year for _, d in rows}, reverse=True)
        if year is None:
            year = available_years[0] if available_years else date.today().year

        selected = sorted(
            ((t, d) for t, d in rows if d.year == year),
            key=lambda row: (row[1].period, row[0].date, row[0].id),
        )

        return PVDYearSummary(
            year=year,
            entries=[t for t, _ in selected],
            total_employee_contribution=sum((d.employee_contribution for _, d in selected), ZERO),
            total_employer_contribution=sum((d.employer_contribution for _, d in selected), ZERO),
            available_years=available_years,
        )

    def get_entry_defaults(self, db: Session, portfolio_id: int) -> EntryDefaults:
        """
        Values to pre-fill the add-transaction form with.

        next_installment_no is the number of transactions so far plus one;
        fund and stock names are the distinct names already used, sorted.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            RecalculationError: If a stored payload cannot be decoded
        """
        portfolio = self._get_portfolio(db, portfolio_id)
        transactions = self._ledger_store_factory(db).list_transactions(portfolio_id)

        fund_names: set[str] = set()
        stock_names: set[str] = set()
        for transaction in transactions:
            details = _stored_details(transaction)
            if isinstance(details, MutualFundDetails):
                fund_names.add(details.fund_name)
            elif isinstance(details, StockDetails):
                stock_names.add(details.stock_name)

        return EntryDefaults(
            investment_type=portfolio.investment_type,
            next_installment_no=len(transactions) + FIRST_INSTALLMENT_NO,
            fund_names=sorted(fund_names),
            stock_names=sorted(stock_names),
        )

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _get_portfolio(self, db: Session, portfolio_id: int) -> Portfolio:
        portfolio = self._portfolio_store_factory(db).read_portfolio(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    def _get_scoped_transaction(
            self,
            db: Session,
            transaction_id: int,
            portfolio_id: int | None,
    ) -> Transaction:
        transaction = self._ledger_store_factory(db).get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        if portfolio_id is not None and transaction.portfolio_id != portfolio_id:
            # Don't reveal that the id exists elsewhere
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def _validate_entry(
            self,
            portfolio: Portfolio,
            amount: Decimal | None,
            details: TransactionDetails | None,
    ) -> Decimal:
        """
        Check a (new or merged) transaction against its portfolio.

        Returns:
            The amount to store (derived when omitted for unit-priced payloads)
        """
        if details is not None and details.investment_type != portfolio.investment_type:
            raise DetailTypeMismatchError(
                portfolio.investment_type.value,
                details.investment_type.value,
            )

        if isinstance(details, MutualFundDetails):
            _require_positive("units_purchased", details.units_purchased)
            _require_positive("price_per_unit", details.price_per_unit)
            expected = details.implied_amount
        elif isinstance(details, StockDetails):
            _require_positive("units_purchased", details.units_purchased)
            _require_positive("price_per_unit_usd", details.price_per_unit_usd)
            _require_positive("exchange_rate", details.exchange_rate)
            self._check_identity(details.purchase_value_thb, details.implied_amount)
            expected = details.purchase_value_thb
        else:
            if amount is None:
                raise ValidationError("amount is required", field="amount")
            _require_positive("amount", amount)
            return amount

        if amount is None:
            return expected

        _require_positive("amount", amount)
        self._check_identity(amount, expected)
        return amount

    def _check_identity(self, amount: Decimal, expected: Decimal) -> None:
        if abs(amount - expected) > self._amount_tolerance:
            raise AmountMismatchError(amount, expected)


def _require_positive(field_name: str, value: Decimal) -> None:
    if value <= ZERO:
        raise NonPositiveValueError(field_name, value)


def _coerce_date(value: date | datetime | str) -> date:
    try:
        return to_ledger_date(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid transaction date: {value!r}", field="date") from e


def _stored_details(transaction: Transaction) -> TransactionDetails | None:
    """Decode a persisted payload; a corrupt one is reported like a failed recompute."""
    try:
        return details_from_dict(transaction.details)
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        logger.error(f"Unreadable details on transaction {transaction.id}: {e}")
        raise RecalculationError(
            transaction.portfolio_id,
            f"Transaction {transaction.id} has unreadable details",
        ) from e
