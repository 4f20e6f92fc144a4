"""
Statement format routing.

Picks the parser for a file from its declared kind (debit/credit) and its
content signature, not its filename.
"""

import logging
from typing import Optional, Union

from spendscope.core.exceptions import UnsupportedFormatError
from spendscope.core.preferences import EngineConfig
from spendscope.parsers.bank.base import BankStatementParser
from spendscope.parsers.bank.icici_credit import ICICICreditParser
from spendscope.parsers.bank.icici_excel import ICICIExcelParser
from spendscope.parsers.bank.icici_pdf import ICICIPdfParser
from spendscope.parsers.bank.models import ParsedStatement, StatementType

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def is_pdf_bytes(data: bytes) -> bool:
    """Check for the PDF signature (leading whitespace tolerated)."""
    return data.lstrip()[:4] == PDF_MAGIC


def select_parser(
    data: bytes,
    statement_type: Union[StatementType, str],
    config: Optional[EngineConfig] = None,
) -> BankStatementParser:
    """
    Choose the parser for the given bytes and declared statement kind.

    Raises:
        UnsupportedFormatError: If a credit statement is not a PDF
    """
    statement_type = StatementType.coerce(statement_type)

    if is_pdf_bytes(data):
        if statement_type is StatementType.CREDIT:
            return ICICICreditParser(config)
        return ICICIPdfParser(config)

    if statement_type is StatementType.CREDIT:
        raise UnsupportedFormatError("Credit card statements are supported as PDF only")

    # Spreadsheets and CSV exports share the tabular parser
    return ICICIExcelParser(config)


def parse_statement(
    data: bytes,
    statement_type: Union[StatementType, str],
    filename: Optional[str] = None,
    password: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> ParsedStatement:
    """
    Parse statement bytes with the matching parser.

    Args:
        data: Raw file bytes
        statement_type: Declared kind, "debit" or "credit"
        filename: Original filename (informational only)
        password: PDF password, if any
        config: Engine configuration

    Returns:
        ParsedStatement

    Raises:
        StatementParseError: Any parse failure, surfaced unchanged
    """
    if not data:
        raise UnsupportedFormatError(f"{filename or 'File'} is empty")

    parser = select_parser(data, statement_type, config)
    logger.debug(f"Routing {filename or 'statement'} to {type(parser).__name__}")
    return parser.parse(data, password=password, source_file=filename or "")
