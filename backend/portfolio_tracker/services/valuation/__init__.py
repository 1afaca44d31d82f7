# backend/portfolio_tracker/services/valuation/__init__.py
"""
Valuation package.

Turns a portfolio's ledger plus its latest quote into a snapshot of
current value, net invested, return and units held.

Usage:
    from portfolio_tracker.services.valuation import RecalculationService

    RecalculationService().recompute(db, portfolio_id=1)

Architecture:
    valuation/
    ├── __init__.py       # This file - package exports
    ├── types.py          # Detail payloads, LedgerEntry, Quote, ValuationSnapshot
    ├── calculators.py    # Units, cash flow, current value, return
    ├── engine.py         # ValuationEngine (pure)
    └── service.py        # RecalculationService (read → compute → write)

Data Flow:
    Transactions → LedgerEntry → UnitAccumulator / CashFlowCalculator
    Units + Quote → CurrentValueCalculator → current value
    Value + Net invested → ReturnCalculator → ValuationSnapshot
"""

from portfolio_tracker.services.valuation.calculators import (
    CashFlowCalculator,
    CurrentValueCalculator,
    ReturnCalculator,
    UnitAccumulator,
)
from portfolio_tracker.services.valuation.engine import ValuationEngine
from portfolio_tracker.services.valuation.service import RecalculationService
from portfolio_tracker.services.valuation.types import (
    CashFlowTotals,
    CooperativeDetails,
    LedgerEntry,
    MutualFundDetails,
    PVDDetails,
    Quote,
    ReturnResult,
    SavingsDetails,
    StockDetails,
    TransactionDetails,
    ValuationSnapshot,
    details_from_dict,
    details_to_dict,
)

__all__ = [
    # Service
    "RecalculationService",
    "ValuationEngine",

    # Data types
    "CooperativeDetails",
    "PVDDetails",
    "MutualFundDetails",
    "StockDetails",
    "SavingsDetails",
    "TransactionDetails",
    "LedgerEntry",
    "Quote",
    "CashFlowTotals",
    "ReturnResult",
    "ValuationSnapshot",
    "details_from_dict",
    "details_to_dict",

    # Calculators (for testing)
    "UnitAccumulator",
    "CashFlowCalculator",
    "CurrentValueCalculator",
    "ReturnCalculator",
]
