"""
Unit tests for categorization data models.
"""

from datetime import date
from decimal import Decimal

import pytest

from spendscope.parsers.bank.models import RawTransaction, StatementType
from spendscope.services.categorization.models import (
    CategorizationRule,
    CategorizedTransaction,
    HistoricalCategorizedTransaction,
    MerchantInfo,
    PaymentMethod,
    RuleField,
    RuleType,
    StatementImportResult,
)


def _raw(**kwargs):
    defaults = dict(
        serial_no=1,
        value_date=date(2024, 3, 1),
        transaction_date=date(2024, 3, 1),
        remarks="UPI/ZOMATO/abc@bank",
        withdrawal_amount=Decimal("250.00"),
        balance=Decimal("9750.00"),
    )
    defaults.update(kwargs)
    return RawTransaction(**defaults)


class TestCategorizationRule:
    """Tests for CategorizationRule."""

    def test_coerces_strings(self):
        """Enum values and amount bounds are coerced."""
        rule = CategorizationRule(5, "rent", "merchant", "NOBROKER", "merchant", min_amount="10000")

        assert rule.type is RuleType.MERCHANT
        assert rule.field is RuleField.MERCHANT
        assert rule.min_amount == Decimal("10000")
        assert rule.max_amount is None

    def test_frozen(self):
        rule = CategorizationRule(10, "food", RuleType.KEYWORD, "ZOMATO")
        with pytest.raises(AttributeError):
            rule.priority = 1

    def test_from_dict_camel_case(self):
        rule = CategorizationRule.from_dict({
            "priority": 3, "categoryId": "fuel", "type": "keyword",
            "pattern": "HPCL", "minAmount": 100, "maxAmount": "5000",
        })
        assert rule.category_id == "fuel"
        assert rule.field is RuleField.REMARKS
        assert rule.min_amount == Decimal("100")
        assert rule.max_amount == Decimal("5000")

    def test_from_dict_unknown_type(self):
        with pytest.raises(ValueError):
            CategorizationRule.from_dict({"priority": 1, "category_id": "x", "type": "fuzzy"})

    def test_to_dict(self):
        data = CategorizationRule(10, "food", RuleType.KEYWORD, "ZOMATO").to_dict()
        assert data == {
            "priority": 10, "category_id": "food", "type": "keyword", "pattern": "ZOMATO",
            "field": "remarks", "min_amount": None, "max_amount": None,
        }
        assert CategorizationRule.from_dict(data) == CategorizationRule(10, "food", RuleType.KEYWORD, "ZOMATO")


class TestCategorizedTransaction:
    """Tests for CategorizedTransaction."""

    def test_from_raw(self):
        txn = CategorizedTransaction.from_raw(
            _raw(), "food", MerchantInfo("ZOMATO", PaymentMethod.UPI), StatementType.DEBIT,
        )
        assert txn.category_id == "food"
        assert txn.merchant_name == "ZOMATO"
        assert txn.payment_method is PaymentMethod.UPI
        assert txn.withdrawal_amount == Decimal("250.00")
        assert txn.user_category_override is None
        assert txn.to_raw() == _raw()

    def test_effective_category(self):
        txn = CategorizedTransaction.from_raw(
            _raw(), "food", MerchantInfo("ZOMATO", PaymentMethod.UPI), StatementType.DEBIT,
        )
        assert txn.effective_category == "food"
        txn.user_category_override = "friends"
        assert txn.effective_category == "friends"

    def test_with_category_keeps_override(self):
        txn = CategorizedTransaction.from_raw(
            _raw(), "food", MerchantInfo("ZOMATO", PaymentMethod.UPI), StatementType.DEBIT,
        )
        txn.user_category_override = "friends"
        updated = txn.with_category("restaurants", MerchantInfo("ZOMATO", PaymentMethod.UPI))

        assert updated.category_id == "restaurants"
        assert updated.user_category_override == "friends"
        assert txn.category_id == "food"

    def test_string_enums_coerced(self):
        txn = CategorizedTransaction(
            serial_no=1, value_date=date(2024, 3, 1), transaction_date=date(2024, 3, 1),
            remarks="X", withdrawal_amount=1, deposit_amount=0, balance=0,
            category_id="uncategorized", merchant_name="Unknown",
            payment_method="UPI", statement_type="credit",
        )
        assert txn.payment_method is PaymentMethod.UPI
        assert txn.statement_type is StatementType.CREDIT
        assert txn.withdrawal_amount == Decimal("1")

    def test_to_dict(self):
        txn = CategorizedTransaction.from_raw(
            _raw(), "food", MerchantInfo("ZOMATO", PaymentMethod.UPI), StatementType.DEBIT,
        )
        data = txn.to_dict()
        assert data["payment_method"] == "UPI"
        assert data["statement_type"] == "debit"
        assert data["withdrawal_amount"] == "250.00"


class TestHistoricalCategorizedTransaction:
    """Tests for HistoricalCategorizedTransaction."""

    def test_from_dict_camel_case(self):
        txn = HistoricalCategorizedTransaction.from_dict({
            "remarks": "UPI/ZOMATO/x@y", "merchantName": "ZOMATO",
            "categoryId": "food", "userCategoryOverride": "friends", "withdrawalAmount": "250",
        })
        assert txn.merchant_name == "ZOMATO"
        assert txn.effective_category == "friends"
        assert txn.withdrawal_amount == Decimal("250")

    def test_from_dict_defaults(self):
        txn = HistoricalCategorizedTransaction.from_dict({"remarks": "X"})
        assert txn.category_id == "uncategorized"
        assert txn.merchant_name is None
        assert txn.deposit_amount == Decimal("0")


class TestStatementImportResult:
    """Tests for StatementImportResult."""

    def test_add_error_marks_failure(self):
        result = StatementImportResult(success=True)
        result.add_warning("minor")
        assert result.success is True
        result.add_error("broken")
        assert result.success is False
        assert result.errors == ["broken"]
        assert result.warnings == ["minor"]

    def test_to_dict_without_statement(self):
        data = StatementImportResult(success=False, error_code="HEADER_NOT_FOUND").to_dict()
        assert data["statement"] is None
        assert data["error_code"] == "HEADER_NOT_FOUND"
        assert data["transactions"] == []
