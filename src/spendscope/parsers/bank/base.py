"""
Base class for bank statement parsers.

Provides common functionality for parsing different statement formats:
reading PDF/spreadsheet content, fingerprinting, period resolution and the
metadata lookups shared by the PDF grammars.
"""

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging
import re

from spendscope.core.fingerprint import compute_file_hash
from spendscope.core.preferences import EngineConfig
from spendscope.parsers.bank.grid import read_sheet_grid
from spendscope.parsers.bank.models import ParsedStatement, RawTransaction, StatementType
from spendscope.parsers.bank.pdf_lines import extract_pdf_lines
from spendscope.parsers.bank.utils import parse_indian_date, reconcile_statement_period

logger = logging.getLogger(__name__)

# A date as printed in statement headers: 01/03/2024, 01-03-24 or March 1, 2024
HEADER_DATE = (
    r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"
    r"|[A-Za-z]{3,9}\s+\d{1,2},\s*\d{4}"
    r"|\d{1,2}\s+[A-Za-z]{3,9},?\s+\d{4})"
)
PERIOD_PATTERN = re.compile(HEADER_DATE + r"\s*(?:to|-|–)\s*" + HEADER_DATE, re.IGNORECASE)

# "MR. SANJAY SHANKAR", "MRS ANITA RAO", "Name : ANITA RAO"
HOLDER_PATTERN = re.compile(r"^(?:MR|MRS|MS|MISS|DR|M/S)\.?\s+([A-Z][A-Z .]+?)\s*$", re.IGNORECASE)
NAME_LABEL_PATTERN = re.compile(r"\bName\s*:\s*([A-Za-z][A-Za-z .]+?)\s*$", re.IGNORECASE)


class BankStatementParser(ABC):
    """Abstract base class for bank statement parsers."""

    BANK_NAME: str = ""  # Override in subclass
    STATEMENT_TYPE: StatementType = StatementType.DEBIT

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize parser.

        Args:
            config: Engine configuration (defaults when omitted)
        """
        self.config = config or EngineConfig.default()

    def parse(
        self,
        data: bytes,
        password: Optional[str] = None,
        source_file: str = "",
    ) -> ParsedStatement:
        """
        Parse statement bytes.

        Args:
            data: Raw file bytes (PDF or spreadsheet)
            password: Optional password for encrypted PDFs
            source_file: Original filename, carried through for the caller

        Returns:
            ParsedStatement with transactions and account info

        Raises:
            StatementParseError: On any unreadable or unsupported input
        """
        file_hash = compute_file_hash(data)
        content = self._read_content(data, password, source_file)
        statement = self._parse_content(content, file_hash)
        statement.source_file = source_file

        logger.info(
            f"{self.BANK_NAME} {statement.statement_type.value} statement "
            f"{source_file or file_hash[:12]}: {statement.transaction_count} transactions, "
            f"{statement.date_from} to {statement.date_to}"
        )
        return statement

    def parse_file(self, file_path: Union[str, Path], password: Optional[str] = None) -> ParsedStatement:
        """Parse a statement file from disk."""
        file_path = Path(file_path)
        return self.parse(file_path.read_bytes(), password=password, source_file=file_path.name)

    @abstractmethod
    def _read_content(self, data: bytes, password: Optional[str], source_file: str) -> Dict[str, Any]:
        """
        Extract raw content from the file. Override in subclass.

        Returns dict with 'pages' (PDF lines) or 'grid' (spreadsheet cells).
        """
        pass

    @abstractmethod
    def _parse_content(self, content: Dict[str, Any], file_hash: str) -> ParsedStatement:
        """
        Parse extracted content. Override in subclass.

        Args:
            content: Output of _read_content
            file_hash: Content hash of the source bytes

        Returns:
            ParsedStatement
        """
        pass

    def _read_pdf(self, data: bytes, password: Optional[str], max_pages: Optional[int] = None) -> Dict[str, Any]:
        """Read PDF content as reconstructed lines per page."""
        return {"pages": extract_pdf_lines(data, max_pages=max_pages, password=password)}

    def _read_excel(self, data: bytes, source_file: str) -> Dict[str, Any]:
        """Read spreadsheet content as a 2-D grid."""
        return {"grid": read_sheet_grid(data, filename=source_file or None)}

    def _resolve_period(
        self,
        declared_from: Optional[date],
        declared_to: Optional[date],
        transactions: List[RawTransaction],
    ) -> Tuple[date, date]:
        """Reconcile the declared statement period with transaction dates."""
        return reconcile_statement_period(
            declared_from,
            declared_to,
            [t.transaction_date for t in transactions],
            tolerance_days=self.config.parsers.period_tolerance_days,
        )

    @staticmethod
    def _find_declared_period(lines: List[str], anchors: Tuple[str, ...]) -> Tuple[Optional[date], Optional[date]]:
        """
        Find the printed statement period.

        Lines containing one of the anchors are tried first (joined with the
        following line, since the dates often wrap), then every line.
        """
        def _search(text: str) -> Tuple[Optional[date], Optional[date]]:
            match = PERIOD_PATTERN.search(text)
            if not match:
                return None, None
            return parse_indian_date(match.group(1)), parse_indian_date(match.group(2))

        lowered_anchors = tuple(a.lower() for a in anchors)
        for i, line in enumerate(lines):
            if any(anchor in line.lower() for anchor in lowered_anchors):
                window = " ".join(lines[i:i + 2])
                found = _search(window)
                if found[0] and found[1]:
                    return found

        for line in lines:
            found = _search(line)
            if found[0] and found[1]:
                return found

        return None, None

    @staticmethod
    def _find_account_holder(lines: List[str]) -> str:
        """Find the account holder name from salutation or 'Name:' lines."""
        for line in lines:
            match = HOLDER_PATTERN.match(line.strip())
            if match:
                return match.group(1).strip()
        for line in lines:
            match = NAME_LABEL_PATTERN.search(line)
            if match:
                return match.group(1).strip()
        return ""
