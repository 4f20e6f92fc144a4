"""
Bank statement parsers for spendscope.

Supports ICICI Bank formats:
- Savings account statements (Excel/CSV export, PDF)
- Credit card statements (PDF)
"""

from spendscope.parsers.bank.models import (
    ParsedStatement,
    RawTransaction,
    StatementType,
)
from spendscope.parsers.bank.base import BankStatementParser
from spendscope.parsers.bank.icici_excel import ICICIExcelParser, looks_like_icici_grid
from spendscope.parsers.bank.icici_pdf import ICICIPdfParser
from spendscope.parsers.bank.icici_credit import ICICICreditParser
from spendscope.parsers.bank.router import parse_statement, select_parser
from spendscope.parsers.bank.utils import (
    calculate_balance_verification,
    parse_amount,
    parse_indian_date,
    reconcile_statement_period,
)

__all__ = [
    "ParsedStatement",
    "RawTransaction",
    "StatementType",
    "BankStatementParser",
    "ICICIExcelParser",
    "ICICIPdfParser",
    "ICICICreditParser",
    "looks_like_icici_grid",
    "parse_statement",
    "select_parser",
    "calculate_balance_verification",
    "parse_amount",
    "parse_indian_date",
    "reconcile_statement_period",
]
