"""
ICICI Bank Excel statement parser.

Parses ICICI Bank savings account statements exported from NetBanking as
XLS/XLSX (also accepts the same layout saved as CSV).

Layout: a few metadata rows (account number, statement period), a header
row starting with "S No.", transaction rows keyed by serial number and a
trailing legends section.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from spendscope.core.exceptions import HeaderNotFoundError, NoTransactionsFoundError
from spendscope.parsers.bank.base import BankStatementParser
from spendscope.parsers.bank.grid import cell_text
from spendscope.parsers.bank.models import ParsedStatement, RawTransaction, StatementType
from spendscope.parsers.bank.utils import parse_amount, parse_indian_date

logger = logging.getLogger(__name__)

# Markers seen in the first rows of ICICI exports
ICICI_MARKERS = ("icici", "finacle", "detailed statement")


def looks_like_icici_grid(grid: List[List[Any]], max_rows: int = 20) -> bool:
    """Detect an ICICI Bank export from its first rows."""
    for row in grid[:max_rows]:
        row_text = " ".join(cell_text(c) for c in row).lower()
        if any(marker in row_text for marker in ICICI_MARKERS):
            return True
    return False


@dataclass
class SheetHeader:
    """Metadata found above the transaction table."""
    header_row_index: int
    column_offset: int = 0
    account_number: str = ""
    account_holder: str = ""
    declared_from: Optional[date] = None
    declared_to: Optional[date] = None


class ICICIExcelParser(BankStatementParser):
    """Parser for ICICI Bank Excel statements."""

    BANK_NAME = "ICICI Bank"
    STATEMENT_TYPE = StatementType.DEBIT

    ACCOUNT_NUMBER_PATTERN = re.compile(r"(\d{10,})")
    HOLDER_PATTERN = re.compile(r"-\s*([A-Z][A-Z\s]+)$", re.IGNORECASE)
    PERIOD_DATE_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}")

    # Column positions relative to the serial number column
    COL_SERIAL = 0
    COL_VALUE_DATE = 1
    COL_TXN_DATE = 2
    COL_CHEQUE = 3
    COL_REMARKS = 4
    COL_WITHDRAWAL = 5
    COL_DEPOSIT = 6
    COL_BALANCE = 7

    MIN_ROW_CELLS = 6

    def _read_content(self, data: bytes, password: Optional[str], source_file: str) -> Dict[str, Any]:
        """Read the first sheet as a grid."""
        return self._read_excel(data, source_file)

    def _parse_content(self, content: Dict[str, Any], file_hash: str) -> ParsedStatement:
        """Parse ICICI Excel statement content."""
        return self.parse_grid(content.get("grid") or [], file_hash)

    def parse_grid(self, grid: List[List[Any]], file_hash: str = "") -> ParsedStatement:
        """
        Parse a statement grid.

        Raises:
            HeaderNotFoundError: If no "S No" header row exists
            NoTransactionsFoundError: If no valid transaction rows remain
        """
        if not looks_like_icici_grid(grid):
            logger.warning("Spreadsheet does not look like an ICICI Bank export; parsing anyway")

        header = self._scan_header(grid)
        transactions = self._parse_transactions(grid, header)

        if not transactions:
            raise NoTransactionsFoundError("debit spreadsheet")

        date_from, date_to = self._resolve_period(header.declared_from, header.declared_to, transactions)

        first = transactions[0]
        opening_balance = first.balance - first.deposit_amount + first.withdrawal_amount

        return ParsedStatement(
            statement_type=self.STATEMENT_TYPE,
            account_number=header.account_number,
            account_holder=header.account_holder,
            date_from=date_from,
            date_to=date_to,
            file_hash=file_hash,
            transactions=transactions,
            opening_balance=opening_balance,
            closing_balance=transactions[-1].balance,
            currency="INR",
        )

    def _scan_header(self, grid: List[List[Any]]) -> SheetHeader:
        """Scan rows above the table for account info, period and header row."""
        account_number = ""
        account_holder = ""
        declared_from = declared_to = None

        for i, row in enumerate(grid):
            if not row:
                continue

            full_row = " ".join(cell_text(c) for c in row)
            row_text = full_row.lower()

            # "Account Number  003101204539 ( INR ) - SANJAY SHANKAR"
            if "account number" in row_text and not account_number:
                match = self.ACCOUNT_NUMBER_PATTERN.search(full_row)
                if match:
                    account_number = match.group(1)
                holder_match = self.HOLDER_PATTERN.search(full_row.strip())
                if holder_match:
                    account_holder = re.sub(r"\s+", " ", holder_match.group(1)).strip()

            # "Transactions List - From 01/03/2024 To 31/03/2024"
            if "from" in row_text and "to" in row_text and declared_from is None:
                dates = self.PERIOD_DATE_PATTERN.findall(full_row)
                if len(dates) >= 2:
                    declared_from = parse_indian_date(dates[0])
                    declared_to = parse_indian_date(dates[1])

            if "s no" in row_text:
                first_cell = row[0] if row else None
                column_offset = 1 if cell_text(first_cell) == "" else 0
                logger.debug(f"Found header row at index {i}, column offset {column_offset}")
                return SheetHeader(
                    header_row_index=i,
                    column_offset=column_offset,
                    account_number=account_number,
                    account_holder=account_holder,
                    declared_from=declared_from,
                    declared_to=declared_to,
                )

        raise HeaderNotFoundError()

    def _parse_transactions(self, grid: List[List[Any]], header: SheetHeader) -> List[RawTransaction]:
        """Parse transaction rows following the header row."""
        offset = header.column_offset
        transactions = []

        def cell(row: List[Any], column: int) -> Any:
            index = column + offset
            return row[index] if index < len(row) else None

        for i in range(header.header_row_index + 1, len(grid)):
            row = grid[i]
            if not row or len(row) < self.MIN_ROW_CELLS:
                continue

            serial_no = self._parse_serial(cell(row, self.COL_SERIAL))
            if serial_no is None:
                row_text = " ".join(cell_text(c) for c in row).lower()
                if "legend" in row_text or "note" in row_text:
                    logger.debug(f"Reached legend section at row {i}")
                    break
                continue

            remarks = cell_text(cell(row, self.COL_REMARKS))
            lowered = remarks.lower()
            if "legend" in lowered or "note" in lowered:
                logger.debug(f"Reached legend/note remarks at row {i}")
                break

            withdrawal = parse_amount(cell(row, self.COL_WITHDRAWAL))
            deposit = parse_amount(cell(row, self.COL_DEPOSIT))
            balance = parse_amount(cell(row, self.COL_BALANCE))

            if not remarks or not (withdrawal > 0 or deposit > 0 or balance > 0):
                logger.debug(f"Skipping row {i}: no remarks or amounts")
                continue

            value_date = parse_indian_date(cell(row, self.COL_VALUE_DATE))
            txn_date = parse_indian_date(cell(row, self.COL_TXN_DATE)) or value_date
            if txn_date is None:
                logger.debug(f"Skipping row {i}: unparseable dates")
                continue

            cheque = cell_text(cell(row, self.COL_CHEQUE))

            transactions.append(RawTransaction(
                serial_no=serial_no,
                value_date=value_date or txn_date,
                transaction_date=txn_date,
                cheque_number=cheque if cheque and cheque != "-" else None,
                remarks=remarks,
                withdrawal_amount=withdrawal,
                deposit_amount=deposit,
                balance=balance,
            ))

        logger.debug(f"Parsed {len(transactions)} transactions from grid")
        return transactions

    @staticmethod
    def _parse_serial(value: Any) -> Optional[int]:
        """Return a positive integer serial number, or None."""
        number = parse_amount(value)
        if number <= Decimal("0") or number != number.to_integral_value():
            return None
        return int(number)
