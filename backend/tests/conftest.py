# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Environment for the app settings (test mode, rate limiting off)
- Database session fixtures (in-memory SQLite)
- TestClient with the database dependency overridden
- Sample data factories
"""

import os

# Must be set before anything imports portfolio_tracker.config
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_tracker.database import enable_sqlite_foreign_keys, get_db
from portfolio_tracker.models import (
    Base,
    InvestmentType,
    Portfolio,
    Transaction,
    TransactionType,
)
from portfolio_tracker.services.valuation import TransactionDetails, details_to_dict


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Portfolio deletes rely on ON DELETE CASCADE
    event.listen(engine, "connect", enable_sqlite_foreign_keys)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Iterator[TestClient]:
    """Create TestClient with database dependency override."""
    from portfolio_tracker.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_portfolio(
        db: Session,
        investment_type: InvestmentType = InvestmentType.MUTUAL_FUND,
        user_id: str = "user-1",
        name: str = "Test Portfolio",
        target_amount: Decimal | None = None,
        nav_per_unit: Decimal | None = None,
        stock_price_usd: Decimal | None = None,
        exchange_rate: Decimal | None = None,
) -> Portfolio:
    """Factory function for creating Portfolio entities with an empty snapshot."""
    portfolio = Portfolio(
        user_id=user_id,
        name=name,
        investment_type=investment_type,
        target_amount=target_amount,
        current_value=Decimal("0"),
        total_invested=Decimal("0"),
        total_return=Decimal("0"),
        return_percentage=Decimal("0"),
        transaction_count=0,
        total_units=Decimal("0"),
        current_nav_per_unit=nav_per_unit,
        current_stock_price_usd=stock_price_usd,
        current_exchange_rate=exchange_rate,
    )
    db.add(portfolio)
    db.commit()
    db.refresh(portfolio)
    return portfolio


def create_transaction(
        db: Session,
        portfolio: Portfolio,
        amount: Decimal,
        transaction_type: TransactionType = TransactionType.DEPOSIT,
        transaction_date: date = date(2024, 1, 15),
        details: TransactionDetails | None = None,
) -> Transaction:
    """
    Factory function for inserting a ledger row directly.

    Bypasses LedgerService, so the portfolio snapshot is NOT refreshed.
    """
    transaction = Transaction(
        portfolio_id=portfolio.id,
        transaction_type=transaction_type,
        amount=amount,
        date=transaction_date,
        details=details_to_dict(details) if details is not None else None,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    return transaction


# =============================================================================
# FIXTURE EXPORTS
# =============================================================================

@pytest.fixture
def fund_portfolio(db: Session) -> Portfolio:
    """An empty mutual fund portfolio."""
    return create_portfolio(db, InvestmentType.MUTUAL_FUND, name="KFSDIV")


@pytest.fixture
def stock_portfolio(db: Session) -> Portfolio:
    """An empty stock portfolio."""
    return create_portfolio(db, InvestmentType.STOCK, name="VOO")


@pytest.fixture
def pvd_portfolio(db: Session) -> Portfolio:
    """An empty provident fund portfolio."""
    return create_portfolio(db, InvestmentType.PVD, name="Provident Fund")


@pytest.fixture
def savings_portfolio(db: Session) -> Portfolio:
    """An empty savings portfolio."""
    return create_portfolio(db, InvestmentType.SAVINGS, name="Savings")


@pytest.fixture
def portfolio_factory(db: Session):
    """create_portfolio bound to the test session."""
    def _create(investment_type: InvestmentType = InvestmentType.MUTUAL_FUND, **kwargs) -> Portfolio:
        return create_portfolio(db, investment_type, **kwargs)
    return _create


@pytest.fixture
def transaction_factory(db: Session):
    """create_transaction bound to the test session."""
    def _create(portfolio: Portfolio, amount: Decimal, **kwargs) -> Transaction:
        return create_transaction(db, portfolio, amount, **kwargs)
    return _create
