# backend/portfolio_tracker/models.py
import enum
import datetime as dt
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, ForeignKey, Enum, Numeric, Integer, JSON, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class InvestmentType(str, enum.Enum):
    """Investment category of a portfolio. Fixed once the portfolio is created."""
    COOPERATIVE = "cooperative"
    PVD = "pvd"  # Provident fund
    MUTUAL_FUND = "mutual_fund"
    STOCK = "stock"
    SAVINGS = "savings"

    @property
    def is_unit_denominated(self) -> bool:
        """Mutual funds and stocks are tracked in units and priced by a quote."""
        return self in (InvestmentType.MUTUAL_FUND, InvestmentType.STOCK)


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Portfolio(Base):
    """
    A named portfolio of one investment type plus its last computed valuation.

    The snapshot columns are written only by the recalculation service.
    The quote columns hold the latest user-entered market quote (no history).
    version_id guards the snapshot write against concurrent recomputes.
    """
    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    # Opaque owner id issued by the upstream auth layer
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    name: Mapped[str] = mapped_column(String(100))
    investment_type: Mapped[InvestmentType] = mapped_column(Enum(InvestmentType))
    target_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # =========================================================================
    # VALUATION SNAPSHOT
    # =========================================================================
    current_value: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    total_invested: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    total_return: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    return_percentage: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    transaction_count: Mapped[int] = mapped_column(Integer, default=0)
    total_units: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    snapshot_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # =========================================================================
    # LATEST QUOTE
    # =========================================================================
    current_nav_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)  # mutual_fund
    current_stock_price_usd: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)  # stock
    current_exchange_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)  # stock, THB per USD
    quote_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="portfolio",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version_id}


class Transaction(Base):
    """
    A deposit or withdrawal recorded against one portfolio.

    amount is always positive and in the settlement currency; the sign comes
    from transaction_type. details holds the type-specific payload, tagged
    with the investment_type it belongs to.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        # "All transactions for portfolio X", ordered by date, is the recompute scan
        Index('ix_transaction_portfolio_date', 'portfolio_id', 'date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"), index=True)
    transaction_type: Mapped[TransactionType] = mapped_column(Enum(TransactionType))
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    portfolio: Mapped["Portfolio"] = relationship(back_populates="transactions")
