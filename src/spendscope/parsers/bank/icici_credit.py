"""
ICICI Bank credit card PDF statement parser.

The transaction ledger sits on the first pages of the statement. Each
transaction starts with "DD/MM/YYYY SerNo" and may wrap onto continuation
lines:

    Date | SerNo. | Transaction Details | Reward Points | Intl.# amount | Amount (in Rs)

Running balance is not printed per transaction, so parsed transactions
carry a balance of 0.
"""

import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from spendscope.core.exceptions import NoTransactionsFoundError
from spendscope.parsers.bank.base import BankStatementParser
from spendscope.parsers.bank.models import ParsedStatement, RawTransaction, StatementType
from spendscope.parsers.bank.pdf_lines import flatten_lines
from spendscope.parsers.bank.utils import collapse_whitespace, compact, parse_amount, parse_indian_date

logger = logging.getLogger(__name__)

TXN_START_RE = re.compile(r"^(\d{2}/\d{2}/\d{4})\s+(\d{8,})\b")

_AMOUNT_TAIL = (
    r"(?:(?P<intl>[\d,]+\.\d{2})\s+(?P<currency>[A-Z]{3})\s+)?"
    r"(?P<amount>[\d,]+\.\d{2})"
    r"(?:\s*(?P<cr>CR)\b)?"
    r"(?:\s+(?P<detail>.*))?$"
)

TXN_LINE_RE = re.compile(
    r"^(?P<date>\d{2}/\d{2}/\d{4})\s+(?P<serial>\d{8,})\s+(?P<narration>.+?)\s+"
    r"(?P<points>-?\d{1,6})\s+" + _AMOUNT_TAIL
)

# Same shape without the reward points column
TXN_LINE_NO_POINTS_RE = re.compile(
    r"^(?P<date>\d{2}/\d{2}/\d{4})\s+(?P<serial>\d{8,})\s+(?P<narration>.+?)\s+" + _AMOUNT_TAIL
)

# Banners that end the ledger section
TERMINAL_PREFIXES = (
    "IMPORTANTMESSAGES", "SAFEBANKINGTIPS", "EARNINGS", "SPENDSOVERVIEW",
    "REWARDPOINTSSUMMARY", "SCHEDULEOFCHARGES",
)

# Repeated page furniture inside the ledger
FOOTER_PREFIXES = (
    "PAGE", "DATESERNO", "DATESER.NO", "TRANSACTIONDETAILS", "CARDNUMBER",
    "STATEMENTPERIOD", "STATEMENTDATE", "INVOICENUMBER", "GSTIN", "HSNCODE",
    "WWW.ICICIBANK", "CUSTOMERCARE", "#INTL",
)

MAX_DETAIL_LENGTH = 80

CARD_NUMBER_RE = re.compile(r"(\d{4}[X*]{4,}\d{4})", re.IGNORECASE)
# Integers only (thousands separators allowed); "12.50" reads as 12 and 50
INTEGER_RE = re.compile(r"\d+(?:,\d+)*")
CASHBACK_WINDOW = 400


class ICICICreditParser(BankStatementParser):
    """Parser for ICICI Bank credit card PDF statements."""

    BANK_NAME = "ICICI Bank"
    STATEMENT_TYPE = StatementType.CREDIT

    PERIOD_ANCHORS = ("statement period", "statement date")

    def _read_content(self, data: bytes, password: Optional[str], source_file: str) -> Dict[str, Any]:
        """Read the ledger pages only."""
        return self._read_pdf(data, password, max_pages=self.config.parsers.credit_page_limit)

    def _parse_content(self, content: Dict[str, Any], file_hash: str) -> ParsedStatement:
        """Parse ICICI credit card statement content."""
        return self.parse_lines(flatten_lines(content.get("pages") or []), file_hash)

    def parse_lines(self, lines: List[str], file_hash: str = "") -> ParsedStatement:
        """
        Parse reconstructed statement lines.

        Raises:
            NoTransactionsFoundError: If no transaction line matches
        """
        transactions = []
        for record in self._accumulate_records(lines):
            txn = self._parse_record(record, len(transactions) + 1)
            if txn is None:
                logger.debug(f"Unrecognised transaction line: {record!r}")
                continue
            transactions.append(txn)

        if not transactions:
            raise NoTransactionsFoundError("credit card")

        declared_from, declared_to = self._find_declared_period(lines, self.PERIOD_ANCHORS)
        date_from, date_to = self._resolve_period(declared_from, declared_to, transactions)
        cashback_earned, cashback_transferred = self._find_cashback(lines)

        return ParsedStatement(
            statement_type=self.STATEMENT_TYPE,
            account_number=self._find_card_number(lines),
            account_holder=self._find_account_holder(lines),
            date_from=date_from,
            date_to=date_to,
            file_hash=file_hash,
            transactions=transactions,
            currency="INR",
            cashback_earned=cashback_earned,
            cashback_transferred=cashback_transferred,
        )

    def _accumulate_records(self, lines: List[str]) -> List[str]:
        """Group lines into one text record per transaction."""
        records = []
        current: Optional[str] = None

        for line in lines:
            line = collapse_whitespace(line)
            if not line:
                continue

            if TXN_START_RE.match(line):
                if current is not None:
                    records.append(current)
                current = line
                continue

            text = compact(line)
            if text.startswith(TERMINAL_PREFIXES):
                if current is not None:
                    records.append(current)
                current = None
                continue

            if text.startswith(FOOTER_PREFIXES):
                continue

            if current is not None:
                current = f"{current} {line}"

        if current is not None:
            records.append(current)

        return records

    def _parse_record(self, record: str, serial_no: int) -> Optional[RawTransaction]:
        """Match one accumulated record against the ledger line shape."""
        match = TXN_LINE_RE.match(record)
        reward_points = None
        if match:
            reward_points = int(match.group("points"))
        else:
            match = TXN_LINE_NO_POINTS_RE.match(record)
            if not match:
                return None

        txn_date = parse_indian_date(match.group("date"))
        if txn_date is None:
            return None

        amount = parse_amount(match.group("amount"))
        remarks = collapse_whitespace(match.group("narration"))

        detail = collapse_whitespace(match.group("detail") or "")
        if detail and not self._is_discardable_detail(detail):
            remarks = f"{remarks} {detail}"

        is_credit = match.group("cr") is not None

        return RawTransaction(
            serial_no=serial_no,
            value_date=txn_date,
            transaction_date=txn_date,
            remarks=remarks,
            withdrawal_amount=Decimal("0") if is_credit else amount,
            deposit_amount=amount if is_credit else Decimal("0"),
            balance=Decimal("0"),
            reward_points=reward_points,
            reference_number=match.group("serial"),
        )

    @staticmethod
    def _is_discardable_detail(detail: str) -> bool:
        text = compact(detail)
        return len(detail) > MAX_DETAIL_LENGTH or text.startswith(TERMINAL_PREFIXES + FOOTER_PREFIXES)

    @staticmethod
    def _find_card_number(lines: List[str]) -> str:
        """Find the masked card number (e.g. 4315XXXXXXXX1234)."""
        for line in lines:
            match = CARD_NUMBER_RE.search(line.replace(" ", ""))
            if match:
                return match.group(1).upper()
        return ""

    @staticmethod
    def _find_cashback(lines: List[str]) -> Tuple[Optional[Decimal], Optional[Decimal]]:
        """
        Read cashback earned/transferred from the EARNINGS summary.

        Uses the first two integers between "EARNINGS" and "SPENDS OVERVIEW"
        (bounded to a fixed window when the closing anchor is missing).
        """
        text = " ".join(lines)
        upper = text.upper()
        start = upper.find("EARNINGS")
        if start < 0:
            return None, None

        start += len("EARNINGS")
        end = upper.find("SPENDS OVERVIEW", start)
        if end < 0 or end - start > CASHBACK_WINDOW:
            end = start + CASHBACK_WINDOW

        numbers = INTEGER_RE.findall(text[start:end])
        if len(numbers) < 2:
            return None, None
        return parse_amount(numbers[0]), parse_amount(numbers[1])
