# backend/portfolio_tracker/routers/portfolios.py
"""
Portfolio management endpoints.

Provides CRUD for portfolios plus the operations that act on a portfolio's
valuation: explicit recalculation, quote updates, and reports.

Note: there is no authentication here. user_id is the opaque owner id
passed on by the upstream auth layer.

Service errors (not found, invalid quote, lost race) are raised as domain
exceptions and turned into responses by the handlers in main.py.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import (
    get_ledger_service,
    get_portfolio_service,
    get_quote_service,
)
from portfolio_tracker.middleware.rate_limit import RATE_LIMIT_WRITE, limiter
from portfolio_tracker.models import InvestmentType, Portfolio
from portfolio_tracker.schemas.pagination import PaginationMeta
from portfolio_tracker.schemas.portfolios import (
    NavQuoteUpdate,
    PortfolioCreate,
    PortfolioListResponse,
    PortfolioResponse,
    PortfolioSummaryResponse,
    PortfolioUpdate,
    StockQuoteUpdate,
)
from portfolio_tracker.schemas.transactions import (
    EntryDefaultsResponse,
    PVDSummaryResponse,
    TransactionResponse,
)
from portfolio_tracker.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from portfolio_tracker.services.ledger import LedgerService
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.quotes import QuoteService

router = APIRouter(
    prefix="/portfolios",
    tags=["Portfolios"],
)

DbSession = Annotated[Session, Depends(get_db)]
Portfolios = Annotated[PortfolioService, Depends(get_portfolio_service)]


# =============================================================================
# CRUD
# =============================================================================

@router.post(
    "/",
    response_model=PortfolioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new portfolio",
    response_description="The created portfolio with an empty valuation"
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_portfolio(
        request: Request,
        portfolio: PortfolioCreate,
        db: DbSession,
        service: Portfolios,
) -> Portfolio:
    """
    Create a portfolio of one investment type.

    - **investment_type**: cooperative, pvd, mutual_fund, stock or savings (cannot be changed later)
    - **user_id**: Owner id from the auth layer
    """
    return service.create_portfolio(db, **portfolio.model_dump())


@router.get(
    "/",
    response_model=PortfolioListResponse,
    summary="List portfolios",
    response_description="List of portfolios matching the filters"
)
def list_portfolios(
        db: DbSession,
        service: Portfolios,
        user_id: str | None = Query(default=None, max_length=128, description="Filter by owner"),
        investment_type: InvestmentType | None = Query(default=None, description="Filter by type"),
        skip: int = Query(default=0, ge=0, description="Number of records to skip"),
        limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT, description="Maximum records to return"),
) -> PortfolioListResponse:
    """Retrieve portfolios, newest first."""
    portfolios, total = service.list_portfolios(
        db,
        user_id=user_id,
        investment_type=investment_type,
        skip=skip,
        limit=limit,
    )
    return PortfolioListResponse(
        items=portfolios,
        pagination=PaginationMeta.create(total=total, skip=skip, limit=limit),
    )


@router.get(
    "/summary",
    response_model=PortfolioSummaryResponse,
    summary="Totals across a user's portfolios",
)
def get_user_summary(
        db: DbSession,
        service: Portfolios,
        user_id: str = Query(..., min_length=1, max_length=128),
) -> PortfolioSummaryResponse:
    """
    Total value, invested amount and return over every portfolio of the user,
    with a breakdown per investment type.
    """
    return PortfolioSummaryResponse.model_validate(service.get_user_summary(db, user_id))


@router.get(
    "/{portfolio_id}",
    response_model=PortfolioResponse,
    summary="Get a portfolio by ID",
)
def get_portfolio(portfolio_id: int, db: DbSession, service: Portfolios) -> Portfolio:
    """Raises **404** if the portfolio does not exist."""
    return service.get_portfolio(db, portfolio_id)


@router.patch(
    "/{portfolio_id}",
    response_model=PortfolioResponse,
    summary="Update a portfolio",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_portfolio(
        request: Request,
        portfolio_id: int,
        portfolio_update: PortfolioUpdate,
        db: DbSession,
        service: Portfolios,
) -> Portfolio:
    """
    Partial update of name, target, description and color.

    **Note:** investment_type and user_id cannot be changed.
    """
    return service.update_portfolio(
        db, portfolio_id, portfolio_update.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{portfolio_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a portfolio",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_portfolio(
        request: Request,
        portfolio_id: int,
        db: DbSession,
        service: Portfolios,
) -> None:
    """
    Delete a portfolio.

    **Warning:** This also deletes all of its transactions.
    """
    service.delete_portfolio(db, portfolio_id)


# =============================================================================
# VALUATION
# =============================================================================

@router.post(
    "/{portfolio_id}/recalculate",
    response_model=PortfolioResponse,
    summary="Recompute a portfolio's valuation",
)
@limiter.limit(RATE_LIMIT_WRITE)
def recalculate_portfolio(
        request: Request,
        portfolio_id: int,
        db: DbSession,
        service: Portfolios,
) -> Portfolio:
    """Rebuild the snapshot from the full ledger and the current quote."""
    return service.recalculate(db, portfolio_id)


@router.put(
    "/{portfolio_id}/quote/nav",
    response_model=PortfolioResponse,
    summary="Set the NAV of a mutual fund",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_nav(
        request: Request,
        portfolio_id: int,
        quote: NavQuoteUpdate,
        db: DbSession,
        service: Annotated[QuoteService, Depends(get_quote_service)],
) -> Portfolio:
    """
    Store the latest NAV per unit and revalue the portfolio.

    Raises **400** if the portfolio is not a mutual fund.
    """
    return service.update_nav(db, portfolio_id, quote.nav_per_unit)


@router.put(
    "/{portfolio_id}/quote/stock",
    response_model=PortfolioResponse,
    summary="Set the price and FX rate of a stock",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_stock_price(
        request: Request,
        portfolio_id: int,
        quote: StockQuoteUpdate,
        db: DbSession,
        service: Annotated[QuoteService, Depends(get_quote_service)],
) -> Portfolio:
    """
    Store the latest USD price and THB/USD rate and revalue the portfolio.

    Raises **400** if the portfolio is not a stock portfolio.
    """
    return service.update_stock_price(db, portfolio_id, quote.price_usd, quote.exchange_rate)


# =============================================================================
# REPORTS
# =============================================================================

@router.get(
    "/{portfolio_id}/pvd-summary",
    response_model=PVDSummaryResponse,
    summary="Provident fund contributions for a year",
)
def get_pvd_summary(
        portfolio_id: int,
        db: DbSession,
        service: Annotated[LedgerService, Depends(get_ledger_service)],
        year: int | None = Query(default=None, ge=1900, le=2200, description="Defaults to the latest year with entries"),
) -> PVDSummaryResponse:
    """Entries ordered by period with employee, employer and combined totals."""
    summary = service.get_pvd_summary(db, portfolio_id, year=year)
    return PVDSummaryResponse(
        portfolio_id=portfolio_id,
        year=summary.year,
        entries=[TransactionResponse.model_validate(t) for t in summary.entries],
        total_employee_contribution=summary.total_employee_contribution,
        total_employer_contribution=summary.total_employer_contribution,
        total_contribution=summary.total_contribution,
        available_years=summary.available_years,
    )


@router.get(
    "/{portfolio_id}/entry-defaults",
    response_model=EntryDefaultsResponse,
    summary="Defaults for the next transaction",
)
def get_entry_defaults(
        portfolio_id: int,
        db: DbSession,
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> EntryDefaultsResponse:
    """Next installment number and the fund/stock names already in use."""
    defaults = service.get_entry_defaults(db, portfolio_id)
    return EntryDefaultsResponse(
        portfolio_id=portfolio_id,
        investment_type=defaults.investment_type,
        next_installment_no=defaults.next_installment_no,
        fund_names=defaults.fund_names,
        stock_names=defaults.stock_names,
    )
