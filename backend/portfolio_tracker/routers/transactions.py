# backend/portfolio_tracker/routers/transactions.py
"""
Transaction ledger endpoints.

Key concepts:
- Each transaction belongs to ONE portfolio and cannot be moved
- amount is always positive; transaction_type gives the direction
- details must be tagged with the portfolio's investment type
- Every create, update and delete revalues the portfolio before responding
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_ledger_service
from portfolio_tracker.middleware.rate_limit import RATE_LIMIT_WRITE, limiter
from portfolio_tracker.models import Transaction, TransactionType
from portfolio_tracker.schemas.pagination import PaginationMeta
from portfolio_tracker.schemas.transactions import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatsResponse,
    TransactionUpdate,
)
from portfolio_tracker.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from portfolio_tracker.services.ledger import LedgerService

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
)

DbSession = Annotated[Session, Depends(get_db)]
Ledger = Annotated[LedgerService, Depends(get_ledger_service)]


def _page(
        service: LedgerService,
        db: Session,
        portfolio_id: int | None,
        transaction_type: TransactionType | None,
        start_date: date | None,
        end_date: date | None,
        skip: int,
        limit: int,
        user_id: str | None = None,
) -> TransactionListResponse:
    transactions, total = service.list_transactions(
        db,
        portfolio_id=portfolio_id,
        user_id=user_id,
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        pagination=PaginationMeta.create(total=total, skip=skip, limit=limit),
    )


@router.post(
    "/",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a deposit or withdrawal",
    response_description="The recorded transaction"
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_transaction(
        request: Request,
        transaction: TransactionCreate,
        db: DbSession,
        service: Ledger,
) -> Transaction:
    """
    Record a transaction and revalue its portfolio.

    - **amount**: Positive, in THB. Optional for mutual fund and stock
      entries, where it is units x price (x FX rate)
    - **details**: Payload tagged with the portfolio's investment_type

    Raises **404** if the portfolio does not exist and **400** if the
    details or amount don't fit the portfolio.
    """
    return service.create_transaction(
        db,
        portfolio_id=transaction.portfolio_id,
        transaction_type=transaction.transaction_type,
        transaction_date=transaction.date,
        amount=transaction.amount,
        notes=transaction.notes,
        details=transaction.details.to_details() if transaction.details is not None else None,
    )


@router.get(
    "/",
    response_model=TransactionListResponse,
    summary="List transactions",
)
def list_transactions(
        db: DbSession,
        service: Ledger,
        portfolio_id: int | None = Query(default=None, gt=0, description="Filter by portfolio"),
        user_id: str | None = Query(default=None, min_length=1, description="Only portfolios owned by this user"),
        transaction_type: TransactionType | None = Query(default=None, description="Only deposits or withdrawals"),
        start_date: date | None = Query(default=None, description="Earliest date (inclusive)"),
        end_date: date | None = Query(default=None, description="Latest date (inclusive)"),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
) -> TransactionListResponse:
    """Transactions, newest first, optionally limited to one owner's portfolios."""
    return _page(
        service, db, portfolio_id, transaction_type, start_date, end_date, skip, limit,
        user_id=user_id,
    )


@router.get(
    "/portfolio/{portfolio_id}",
    response_model=TransactionListResponse,
    summary="List a portfolio's transactions",
)
def list_portfolio_transactions(
        portfolio_id: int,
        db: DbSession,
        service: Ledger,
        transaction_type: TransactionType | None = Query(default=None),
        start_date: date | None = Query(default=None),
        end_date: date | None = Query(default=None),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
) -> TransactionListResponse:
    """Raises **404** if the portfolio does not exist."""
    return _page(service, db, portfolio_id, transaction_type, start_date, end_date, skip, limit)


@router.get(
    "/portfolio/{portfolio_id}/stats",
    response_model=TransactionStatsResponse,
    summary="Deposit and withdrawal totals of a portfolio",
)
def get_portfolio_stats(
        portfolio_id: int,
        db: DbSession,
        service: Ledger,
) -> TransactionStatsResponse:
    totals = service.get_stats(db, portfolio_id)
    return TransactionStatsResponse(
        portfolio_id=portfolio_id,
        total_deposits=totals.total_deposits,
        total_withdrawals=totals.total_withdrawals,
        net_invested=totals.net_invested,
        transaction_count=totals.transaction_count,
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction by ID",
)
def get_transaction(transaction_id: int, db: DbSession, service: Ledger) -> Transaction:
    return service.get_transaction(db, transaction_id)


@router.patch(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Update a transaction",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_transaction(
        request: Request,
        transaction_id: int,
        transaction_update: TransactionUpdate,
        db: DbSession,
        service: Ledger,
) -> Transaction:
    """
    Partial update; the portfolio is revalued before the response.

    **Note:** portfolio_id cannot be changed.
    """
    return service.update_transaction(db, transaction_id, transaction_update.to_changes())


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a transaction",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_transaction(
        request: Request,
        transaction_id: int,
        db: DbSession,
        service: Ledger,
) -> None:
    """The portfolio is revalued without the transaction."""
    service.delete_transaction(db, transaction_id)
