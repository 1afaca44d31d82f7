# backend/portfolio_tracker/schemas/errors.py
"""
Error response envelope shared by every endpoint.

Produced by the global exception handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """
    Standard error response format.

    Example:
        {"error": "AmountMismatchError",
         "message": "Amount 1000 does not match the value implied by the details (1200)",
         "details": {"field": "amount"}}
    """

    error: str = Field(
        ...,
        description="Error type (e.g., 'PortfolioNotFoundError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context (optional)"
    )


class ValidationErrorDetail(BaseModel):
    """Request-shape error (422), one entry per failing field."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="List of validation errors"
    )
