"""
Utility functions for bank parsers.

Provides amount/date normalization, statement period reconciliation and
running-balance verification shared by all statement parsers.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Tuple

from spendscope.parsers.bank.models import RawTransaction

logger = logging.getLogger(__name__)

# Leading numeric prefix, the way spreadsheet cells are read ("250.00", "1e3" is not expected)
_NUMBER_PREFIX_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")

# DD/MM/YYYY, DD-MM-YY, DD.MM.YYYY after whitespace removal
_NUMERIC_DATE_RE = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})$")

# Fallback formats with month names and ISO dates
DATE_FORMATS = [
    "%Y-%m-%d",      # 2024-03-01
    "%B %d, %Y",     # March 1, 2024
    "%b %d, %Y",     # Mar 1, 2024
    "%d %b %Y",      # 01 Mar 2024
    "%d %B %Y",      # 01 March 2024
    "%d %b, %Y",     # 01 Mar, 2024
    "%d %B, %Y",     # 01 March, 2024
    "%d-%b-%Y",      # 01-Mar-2024
    "%d-%b-%y",      # 01-Mar-24
]

# Excel serial day 0
_EXCEL_EPOCH = date(1899, 12, 30)


def parse_amount(value: Any) -> Decimal:
    """
    Parse a monetary cell value, handling Indian comma formatting.

    Never raises: empty or malformed input yields Decimal("0").

    Examples:
        "1,23,456.78" -> Decimal("123456.78")
        "(500.00)"    -> Decimal("-500.00")
        "250.00 CR"   -> Decimal("250.00")
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")

    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")

    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return Decimal("0")
        return Decimal(str(value))

    if not isinstance(value, str):
        return Decimal("0")

    text = value.strip()
    if not text or text in ("-", "nan", "NaN", "None"):
        return Decimal("0")

    negative = text.startswith("(") and text.endswith(")")
    cleaned = re.sub(r"[,\s₹()]|INR|Rs\.?", "", text, flags=re.IGNORECASE)
    cleaned = re.sub(r"(?:CR|DR)$", "", cleaned, flags=re.IGNORECASE)

    match = _NUMBER_PREFIX_RE.match(cleaned)
    if not match:
        return Decimal("0")

    try:
        amount = Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")

    return -amount if negative else amount


def parse_indian_date(value: Any) -> Optional[date]:
    """
    Parse a date in Indian day-first notation.

    Accepts date/datetime objects (including pandas Timestamps), Excel serial
    day numbers and strings such as "01/03/2024", "01-03-24", "0 1-03-2024"
    (stray OCR spaces), "01/03/2024 10:15:00" or "March 1, 2024".

    Returns:
        date, or None if the value cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and math.isnan(value):
            return None
        if 20000 <= value <= 80000:
            return _EXCEL_EPOCH + timedelta(days=int(value))
        return None

    if not isinstance(value, str):
        return None

    text = re.sub(r"\s+", " ", value).strip()
    if not text:
        return None

    candidates = [text.replace(" ", ""), text.split(" ")[0]]
    for candidate in candidates:
        match = _NUMERIC_DATE_RE.match(candidate)
        if match:
            day, month, year = (int(g) for g in match.groups())
            if year < 100:
                year += 2000
            try:
                return date(year, month, day)
            except ValueError:
                return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


def reconcile_statement_period(
    declared_from: Optional[date],
    declared_to: Optional[date],
    transaction_dates: Iterable[date],
    tolerance_days: int = 120,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Resolve the statement period from the declared period and actual dates.

    Each declared bound is kept unless it is more than ``tolerance_days``
    away from the earliest/latest transaction date, in which case the
    transaction-derived bound is used instead. Invalid declared dates fall
    back to transaction dates; with no transactions the declared period (or
    today) is used. An inverted result is swapped.

    Args:
        declared_from: Period start printed on the statement (may be None)
        declared_to: Period end printed on the statement (may be None)
        transaction_dates: Transaction dates of the parsed rows
        tolerance_days: Allowed drift between declared and actual bounds
        today: Reference date used when nothing else is known

    Returns:
        Tuple of (date_from, date_to) with date_from <= date_to
    """
    dates = [d for d in transaction_dates if d is not None]
    tolerance = timedelta(days=tolerance_days)

    if not dates:
        fallback = today or date.today()
        date_from = declared_from or declared_to or fallback
        date_to = declared_to or declared_from or fallback
    else:
        actual_from, actual_to = min(dates), max(dates)

        if declared_from is None or abs(declared_from - actual_from) > tolerance:
            if declared_from is not None:
                logger.warning(
                    f"Declared period start {declared_from} is far from first transaction "
                    f"{actual_from}; using transaction date"
                )
            date_from = actual_from
        else:
            date_from = declared_from

        if declared_to is None or abs(declared_to - actual_to) > tolerance:
            if declared_to is not None:
                logger.warning(
                    f"Declared period end {declared_to} is far from last transaction "
                    f"{actual_to}; using transaction date"
                )
            date_to = actual_to
        else:
            date_to = declared_to

    if date_from > date_to:
        date_from, date_to = date_to, date_from

    return date_from, date_to


def calculate_balance_verification(
    transactions: List[RawTransaction],
    opening_balance: Optional[Decimal] = None,
    tolerance: Decimal = Decimal("0.01"),
) -> dict:
    """
    Verify balance progression in transactions.

    Args:
        transactions: Transactions in statement order
        opening_balance: Balance before the first transaction, if known
        tolerance: Allowed rounding difference

    Returns:
        Dictionary with verification results
    """
    if not transactions:
        return {
            "verified": True,
            "errors": [],
            "final_balance": opening_balance
        }

    errors = []
    running_balance = opening_balance

    for txn in transactions:
        if running_balance is None:
            running_balance = txn.balance
            continue

        expected_balance = running_balance + txn.deposit_amount - txn.withdrawal_amount

        diff = abs(expected_balance - txn.balance)
        if diff > tolerance:
            errors.append(
                f"Balance mismatch at transaction {txn.serial_no} ({txn.transaction_date}): "
                f"Expected {expected_balance}, Got {txn.balance}"
            )

        running_balance = txn.balance

    return {
        "verified": len(errors) == 0,
        "errors": errors,
        "final_balance": running_balance
    }


def compact(text: str) -> str:
    """Uppercase text with all whitespace removed, for banner prefix checks."""
    return re.sub(r"\s+", "", text or "").upper()


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return re.sub(r"\s+", " ", text or "").strip()
