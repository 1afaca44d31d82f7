# backend/tests/schemas/test_transaction_schemas.py
"""
Tests for transaction request schemas.

Covers the shape rules Pydantic enforces before a request reaches the
ledger: discriminated detail payloads, derived fields, date coercion and
the amount requirement.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from portfolio_tracker.models import TransactionType
from portfolio_tracker.schemas.transactions import (
    CooperativeDetailsSchema,
    MutualFundDetailsSchema,
    StockDetailsSchema,
    TransactionCreate,
    TransactionUpdate,
)
from portfolio_tracker.services.valuation import (
    CooperativeDetails,
    MutualFundDetails,
    StockDetails,
)


def fund_payload(**overrides) -> dict:
    payload = {
        "investment_type": "mutual_fund",
        "fund_name": " KFSDIV ",
        "installment_no": 1,
        "units_purchased": "100",
        "price_per_unit": "10",
    }
    payload.update(overrides)
    return payload


class TestDetailPayloads:
    """The five detail payloads and their discriminator."""

    def test_discriminator_selects_payload(self):
        create = TransactionCreate(
            portfolio_id=1,
            transaction_type="deposit",
            date="2024-01-15",
            details=fund_payload(),
        )

        assert isinstance(create.details, MutualFundDetailsSchema)
        assert create.details.fund_name == "KFSDIV"

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError):
            TransactionCreate(
                portfolio_id=1,
                transaction_type="deposit",
                amount="100",
                date="2024-01-15",
                details={"investment_type": "bond"},
            )

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            MutualFundDetailsSchema(**fund_payload(color="red"))

    def test_cooperative_month_defaults_from_period(self):
        details = CooperativeDetailsSchema(year=2024, period=3, total_invested_to_date="1500")

        assert details.month == "March"
        assert details.to_details() == CooperativeDetails(
            year=2024, period=3, month="March", total_invested_to_date=Decimal("1500")
        )

    @pytest.mark.parametrize("period", [0, 13])
    def test_period_range(self, period):
        with pytest.raises(ValidationError):
            CooperativeDetailsSchema(year=2024, period=period, total_invested_to_date="1")

    def test_stock_purchase_value_derived(self):
        details = StockDetailsSchema(
            stock_name="AAPL",
            installment_no=1,
            units_purchased="10",
            price_per_unit_usd="175.50",
            exchange_rate="35.20",
        )

        converted = details.to_details()

        assert isinstance(converted, StockDetails)
        assert converted.purchase_value_thb == Decimal("61776")

    def test_stock_purchase_value_kept_when_given(self):
        details = StockDetailsSchema(
            stock_name="AAPL",
            installment_no=1,
            units_purchased="10",
            price_per_unit_usd="175.50",
            exchange_rate="35.20",
            purchase_value_thb="61776.01",
        )

        assert details.to_details().purchase_value_thb == Decimal("61776.01")

    @pytest.mark.parametrize("field", ["units_purchased", "price_per_unit"])
    def test_fund_values_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            MutualFundDetailsSchema(**fund_payload(**{field: "0"}))


class TestTransactionCreate:
    """Tests for TransactionCreate."""

    def test_amount_optional_with_unit_details(self):
        create = TransactionCreate(
            portfolio_id=1, transaction_type="deposit", date="2024-01-15", details=fund_payload()
        )

        assert create.amount is None
        assert create.details.to_details() == MutualFundDetails(
            "KFSDIV", 1, Decimal("100"), Decimal("10")
        )

    def test_amount_required_otherwise(self):
        with pytest.raises(ValidationError, match="amount is required"):
            TransactionCreate(portfolio_id=1, transaction_type="deposit", date="2024-01-15")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            TransactionCreate(portfolio_id=1, transaction_type="deposit", amount=amount, date="2024-01-15")

    def test_timestamp_truncated_to_date(self):
        create = TransactionCreate(
            portfolio_id=1,
            transaction_type="withdrawal",
            amount="100",
            date="2024-03-15T23:30:00Z",
        )

        assert create.date == date(2024, 3, 15)
        assert create.transaction_type == TransactionType.WITHDRAWAL


class TestTransactionUpdate:
    """Tests for TransactionUpdate."""

    def test_only_sent_fields_become_changes(self):
        update = TransactionUpdate(notes="fixed")

        assert update.to_changes() == {"notes": "fixed"}

    def test_details_converted(self):
        update = TransactionUpdate(details=fund_payload(units_purchased="50"))

        changes = update.to_changes()

        assert changes["details"] == MutualFundDetails("KFSDIV", 1, Decimal("50"), Decimal("10"))

    def test_details_can_be_cleared(self):
        assert TransactionUpdate(details=None).to_changes() == {"details": None}

    @pytest.mark.parametrize("field", ["transaction_type", "amount", "date"])
    def test_required_fields_cannot_be_null(self, field):
        with pytest.raises(ValidationError, match="cannot be null"):
            TransactionUpdate(**{field: None})

    def test_portfolio_id_rejected(self):
        with pytest.raises(ValidationError):
            TransactionUpdate(portfolio_id=2)
