"""
Unit tests for merchant extraction.
"""

import pytest

from spendscope.services.categorization.merchant import (
    extract_card_merchant,
    extract_merchant,
    find_merchant_segment,
    is_generic_merchant,
    is_merchant_like,
    merchant_key,
    normalize_merchant,
)
from spendscope.services.categorization.models import PaymentMethod


class TestExtractMerchant:
    """Tests for debit narration merchant extraction."""

    @pytest.mark.parametrize("remarks, merchant, method", [
        ("UPI/ZOMATO/abc@bank", "ZOMATO", PaymentMethod.UPI),
        ("UPI/9876543210/rahul@okaxis", "RAHUL", PaymentMethod.UPI),
        ("NEFT-AXOMB01602020708-ARUNA SHARMA-FAMILY", "ARUNA SHARMA", PaymentMethod.NEFT),
        ("MMT/IMPS/601536454744/FUNDS TRANSFER/BILLIONBRA/Yes Bank", "BILLIONBRA", PaymentMethod.IMPS),
        ("BIL/INFT/FAP5100089/Family/RAHUL", "FAMILY", PaymentMethod.OTHER),
        ("VIN/AMAZON RETAIL/BANGALORE", "AMAZON RETAIL", PaymentMethod.CARD),
        ("NFS/ATM WDL/MUMBAI", "MUMBAI", PaymentMethod.ATM),
        ("CHQ PAID-MR RAO", "CHQ PAID", PaymentMethod.CHEQUE),
        ("INTEREST CREDIT", "INTEREST CREDIT", PaymentMethod.OTHER),
    ])
    def test_buckets(self, remarks, merchant, method):
        info = extract_merchant(remarks)
        assert info.merchant == merchant
        assert info.method is method

    @pytest.mark.parametrize("remarks, fallback, method", [
        ("UPI/123456789/x@ybl", "Unknown UPI", PaymentMethod.UPI),
        ("NEFT-AXOMB01602020708", "Unknown NEFT", PaymentMethod.NEFT),
        ("MMT/IMPS/601536454744", "Unknown IMPS", PaymentMethod.IMPS),
        ("BIL/INFT/FAP5100089", "Bill Payment", PaymentMethod.OTHER),
        ("VIN/1234567890", "Card Payment", PaymentMethod.CARD),
        ("ATM/CASH WDL/12345678", "ATM Withdrawal", PaymentMethod.ATM),
        ("CHEQUE/000123456", "Cheque", PaymentMethod.CHEQUE),
        ("", "Unknown", PaymentMethod.OTHER),
    ])
    def test_fallback_labels(self, remarks, fallback, method):
        """Without a merchant-like segment the bucket label is used."""
        info = extract_merchant(remarks)
        assert info.merchant == fallback
        assert info.method is method
        assert is_generic_merchant(info.merchant)


class TestExtractCardMerchant:
    """Tests for credit card narrations."""

    def test_strips_country_suffix(self):
        info = extract_card_merchant("SWIGGY BANGALORE IN")
        assert info.merchant == "SWIGGY BANGALORE"
        assert info.method is PaymentMethod.CARD

    def test_plain(self):
        assert extract_card_merchant("AMAZON PAY").merchant == "AMAZON PAY"

    def test_fallback(self):
        assert extract_card_merchant("1234567890").merchant == "Card Payment"


class TestHelpers:
    """Tests for normalization helpers."""

    def test_normalize_merchant(self):
        assert normalize_merchant("  Swiggy.in  (Bangalore) ") == "SWIGGY IN BANGALORE"
        assert normalize_merchant("H&M @ Mall") == "H&M @ MALL"

    def test_merchant_key(self):
        assert merchant_key("H&M") == "H M"
        assert merchant_key("zomato@hdfc") == "ZOMATO HDFC"
        assert merchant_key("Zomato") == merchant_key("ZOMATO ")

    @pytest.mark.parametrize("segment, expected", [
        ("ZOMATO", True),
        ("AB", False),
        ("12345", False),
        ("1,250.00", False),
        ("UPI", False),
        ("Funds Transfer", False),
        ("AXOMB01602020708", False),
        ("ACME CORP 2024", True),
    ])
    def test_is_merchant_like(self, segment, expected):
        assert is_merchant_like(segment) is expected

    def test_find_merchant_segment_truncates_vpa(self):
        assert find_merchant_segment("UPI/9876543210/swiggy@icici") == "SWIGGY"
        assert find_merchant_segment("UPI/123") is None

    def test_is_generic_merchant(self):
        assert is_generic_merchant(None)
        assert is_generic_merchant("")
        assert is_generic_merchant("Unknown UPI")
        assert not is_generic_merchant("ZOMATO")
