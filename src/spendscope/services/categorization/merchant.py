"""
Merchant extraction from transaction narrations.

Narrations look like:
    UPI/ZOMATO/zomato@hdfcbank/Payment from Ph/HDFC BANK/...
    NEFT-AXOMB01602020708-ARUNA SHARMA-FAMILY-...
    MMT/IMPS/601536454744/FUNDS TRANSFER/BILLIONBRA/Yes Bank
    BIL/INFT/FAP5100089/Family/RAHUL
    VIN/AMAZON RETAIL/BANGALORE/...

The channel comes from the narration prefix; the merchant is the first
segment that looks like a name rather than a channel code, reference
number or VPA domain.
"""

import re
from typing import Optional

from spendscope.services.categorization.models import MerchantInfo, PaymentMethod

SEGMENT_SPLIT_RE = re.compile(r"[/|:;\-_*]")
REFERENCE_DIGITS = 5

NOISE_WORDS = frozenset({
    "UPI", "IMPS", "NEFT", "RTGS", "MMT", "BIL", "VIN", "INFT", "INF", "TRF",
    "REF", "ACCOUNT", "CARD", "ATM", "CHEQUE", "CHQ", "NFS", "WDL", "CASH",
    "PAY", "PAYMENT", "TRANSFER", "FUNDS TRANSFER", "FUND TRANSFER",
    "ATM WDL", "CASH WDL", "CASH WITHDRAWAL", "POS", "ECOM", "CMS", "CLG",
    "ACH", "IND", "MOBILE BANKING", "NET BANKING", "SENT USING PAYTM UPI",
})

UNKNOWN_UPI = "Unknown UPI"
UNKNOWN_NEFT = "Unknown NEFT"
UNKNOWN_IMPS = "Unknown IMPS"
BILL_PAYMENT = "Bill Payment"
CARD_PAYMENT = "Card Payment"
ATM_WITHDRAWAL = "ATM Withdrawal"
CHEQUE = "Cheque"
UNKNOWN = "Unknown"

FALLBACK_LABELS = frozenset({
    UNKNOWN_UPI, UNKNOWN_NEFT, UNKNOWN_IMPS, BILL_PAYMENT, CARD_PAYMENT,
    ATM_WITHDRAWAL, CHEQUE, UNKNOWN,
})

# Trailing country code printed on card narrations ("AMAZON PAY BANGALORE IN")
CARD_COUNTRY_SUFFIX_RE = re.compile(r"\s+(?:IN|IND)$")


def normalize_merchant(text: str) -> str:
    """Uppercase and collapse anything outside [A-Z0-9@&] to single spaces."""
    return re.sub(r"[^A-Z0-9@&]+", " ", (text or "").upper()).strip()


def merchant_key(name: str) -> str:
    """Grouping key for a merchant: normalized, without '@' and '&'."""
    return re.sub(r"\s+", " ", normalize_merchant(name).replace("@", " ").replace("&", " ")).strip()


def is_generic_merchant(name: Optional[str]) -> bool:
    """Fallback labels say nothing about who was paid."""
    return not name or name in FALLBACK_LABELS


def _is_reference_code(segment: str) -> bool:
    """Bank reference tokens: one word carrying a long digit run (AXOMB01602020708)."""
    return " " not in segment and sum(c.isdigit() for c in segment) >= REFERENCE_DIGITS


def is_merchant_like(segment: str) -> bool:
    """Check whether a narration segment can be a merchant name."""
    segment = segment.strip()
    compact = re.sub(r"\s+", "", segment)
    if len(compact) < 3 or not re.search(r"[A-Za-z]", segment):
        return False
    if re.fullmatch(r"[\d.,]+", compact):
        return False
    if normalize_merchant(segment) in NOISE_WORDS:
        return False
    # Goes beyond the base heuristic: single-word bank references are rejected too
    return not _is_reference_code(segment)


def find_merchant_segment(remarks: str) -> Optional[str]:
    """Return the first merchant-like narration segment, normalized."""
    for segment in SEGMENT_SPLIT_RE.split(remarks or ""):
        if "@" in segment:
            segment = segment.split("@", 1)[0]
        if is_merchant_like(segment):
            return normalize_merchant(segment)
    return None


def extract_merchant(remarks: str) -> MerchantInfo:
    """
    Extract merchant name and payment method from a debit narration.

    Examples:
        "UPI/ZOMATO/abc@bank"       -> ZOMATO, UPI
        "NEFT-AXOMB0160-ARUNA SHARMA-FAMILY" -> ARUNA SHARMA, NEFT
        "NFS/ATM WDL/12345"         -> ATM Withdrawal, ATM
    """
    text = (remarks or "").upper()

    if text.startswith("UPI/"):
        method, fallback = PaymentMethod.UPI, UNKNOWN_UPI
    elif text.startswith("NEFT"):
        method, fallback = PaymentMethod.NEFT, UNKNOWN_NEFT
    elif text.startswith("MMT/IMPS"):
        method, fallback = PaymentMethod.IMPS, UNKNOWN_IMPS
    elif text.startswith("BIL/"):
        method, fallback = PaymentMethod.OTHER, BILL_PAYMENT
    elif text.startswith("VIN/"):
        method, fallback = PaymentMethod.CARD, CARD_PAYMENT
    elif "ATM" in text or "CASH WITHDRAWAL" in text or "CASH WDL" in text:
        method, fallback = PaymentMethod.ATM, ATM_WITHDRAWAL
    elif "CHQ" in text or "CHEQUE" in text:
        method, fallback = PaymentMethod.CHEQUE, CHEQUE
    else:
        method, fallback = PaymentMethod.OTHER, UNKNOWN

    return MerchantInfo(find_merchant_segment(remarks) or fallback, method)


def extract_card_merchant(remarks: str) -> MerchantInfo:
    """Merchant for a credit card line: the narration itself, method CARD."""
    merchant = find_merchant_segment(remarks)
    if merchant:
        merchant = CARD_COUNTRY_SUFFIX_RE.sub("", merchant) or merchant
    return MerchantInfo(merchant or CARD_PAYMENT, PaymentMethod.CARD)
