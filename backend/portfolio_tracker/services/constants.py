# backend/portfolio_tracker/services/constants.py
"""
Shared constants for the Portfolio Tracker services.

Usage:
    from portfolio_tracker.services.constants import ZERO, HUNDRED, RATE_LIMIT_WRITE
"""

from decimal import Decimal


# =============================================================================
# DECIMAL CONSTANTS
# =============================================================================

# Valuation arithmetic stays in Decimal end to end; never mix with float
ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# LEDGER
# =============================================================================

# Installment numbers start at 1 for an empty ledger
FIRST_INSTALLMENT_NO: int = 1

# PVD and cooperative contributions are booked per calendar month
MIN_PERIOD: int = 1
MAX_PERIOD: int = 12


# =============================================================================
# PAGINATION
# =============================================================================

DEFAULT_LIST_LIMIT: int = 100
MAX_LIST_LIMIT: int = 1000


# =============================================================================
# RATE LIMITS (slowapi format: "<count>/<period>")
# =============================================================================

# Reads (portfolio and transaction listings)
RATE_LIMIT_DEFAULT: str = "100/minute"

# Every ledger or quote write triggers a full recompute of the portfolio
RATE_LIMIT_WRITE: str = "30/minute"

# Health probes are polled by orchestrators
RATE_LIMIT_HEALTH: str = "300/minute"
