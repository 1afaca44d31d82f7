# backend/portfolio_tracker/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application layer (main.py) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── NonPositiveValueError
    │   ├── DetailTypeMismatchError
    │   ├── AmountMismatchError
    │   └── QuoteNotApplicableError
    ├── NotFoundError
    │   ├── PortfolioNotFoundError
    │   └── TransactionNotFoundError
    └── RecalculationError
        └── ConcurrentModificationError
"""

from decimal import Decimal


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when ledger or quote input breaks a domain rule.

    Shape errors (missing fields, wrong types) are caught earlier by Pydantic;
    this covers the rules that need the portfolio to check.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class NonPositiveValueError(ValidationError):
    """Raised when an amount, unit count, price or FX rate is zero or negative."""

    def __init__(self, field: str, value: Decimal) -> None:
        self.value = value
        super().__init__(f"{field} must be greater than 0 (got {value})", field=field)


class DetailTypeMismatchError(ValidationError):
    """
    Raised when a transaction's detail payload is tagged with a different
    investment type than its portfolio.
    """

    def __init__(self, portfolio_type: str, detail_type: str) -> None:
        self.portfolio_type = portfolio_type
        self.detail_type = detail_type
        super().__init__(
            f"Transaction details for '{detail_type}' cannot be recorded "
            f"in a '{portfolio_type}' portfolio",
            field="details",
        )


class AmountMismatchError(ValidationError):
    """
    Raised when a unit-priced transaction's amount disagrees with
    units × price (× FX rate for stocks).
    """

    def __init__(self, amount: Decimal, expected: Decimal) -> None:
        self.amount = amount
        self.expected = expected
        super().__init__(
            f"Amount {amount} does not match the value implied by the details ({expected})",
            field="amount",
        )


class QuoteNotApplicableError(ValidationError):
    """Raised when a quote is set on a portfolio type that has no such quote."""

    def __init__(self, quote_kind: str, investment_type: str) -> None:
        self.quote_kind = quote_kind
        self.investment_type = investment_type
        super().__init__(
            f"A {quote_kind} quote cannot be set on a '{investment_type}' portfolio",
            field="investment_type",
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Portfolio", "Transaction")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class PortfolioNotFoundError(NotFoundError):
    """Raised when a portfolio cannot be found."""

    def __init__(self, portfolio_id: int) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(
            f"Portfolio {portfolio_id} not found",
            resource_type="Portfolio",
            resource_id=portfolio_id,
        )


class TransactionNotFoundError(NotFoundError):
    """Raised when a transaction cannot be found (or is not in the given portfolio)."""

    def __init__(self, transaction_id: int) -> None:
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} not found",
            resource_type="Transaction",
            resource_id=transaction_id,
        )


# =============================================================================
# RECALCULATION ERRORS
# =============================================================================


class RecalculationError(ServiceError):
    """
    Raised when the snapshot could not be recomputed and written.

    The unit of work is rolled back before this propagates, so the previous
    snapshot (and the ledger) are left untouched.

    Attributes:
        portfolio_id: Portfolio whose recompute failed
    """

    def __init__(self, portfolio_id: int, message: str | None = None) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(message or f"Failed to recalculate portfolio {portfolio_id}")


class ConcurrentModificationError(RecalculationError):
    """
    Raised when another writer updated the portfolio between our read and
    our snapshot write (version check failed).
    """

    def __init__(self, portfolio_id: int) -> None:
        super().__init__(
            portfolio_id,
            f"Portfolio {portfolio_id} was modified concurrently, please retry",
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "NonPositiveValueError",
    "DetailTypeMismatchError",
    "AmountMismatchError",
    "QuoteNotApplicableError",
    "NotFoundError",
    "PortfolioNotFoundError",
    "TransactionNotFoundError",
    "RecalculationError",
    "ConcurrentModificationError",
]
