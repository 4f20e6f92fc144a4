"""
Shared pytest fixtures for spendscope tests.

Provides statement builders (xlsx via openpyxl, PDF via reportlab) and
common rule sets.
"""

import io
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from openpyxl import Workbook
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from spendscope.services.categorization.models import CategorizationRule, RuleType


def build_xlsx(rows: Sequence[Sequence]) -> bytes:
    """Write rows to the first sheet of an in-memory workbook."""
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_pdf(pages: Sequence[Sequence[str]], password: Optional[str] = None) -> bytes:
    """Draw each page's lines top-down, one text line per row."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4, encrypt=password)
    _, height = A4
    for lines in pages:
        c.setFont("Helvetica", 9)
        y = height - 50
        for line in lines:
            c.drawString(30, y, line)
            y -= 16
        c.showPage()
    c.save()
    return buf.getvalue()


# Debit spreadsheet as exported by ICICI NetBanking
ICICI_XLS_ROWS: List[list] = [
    [None, "ICICI Bank Limited", None, None, None, None, None, None],
    ["Detailed Statement", None, None, None, None, None, None, None],
    ["Account Number", "003101204539 ( INR ) - SANJAY SHANKAR", None, None, None, None, None, None],
    ["Transactions List - From 01/03/2024 To 31/03/2024", None, None, None, None, None, None, None],
    ["S No.", "Value Date", "Transaction Date", "Cheque Number", "Transaction Remarks",
     "Withdrawal Amount (INR )", "Deposit Amount (INR )", "Balance (INR )"],
    ["1", "01/03/2024", "01/03/2024", None, "UPI/ZOMATO/abc@bank", "250.00", None, "9750.00"],
    ["2", "05/03/2024", "05/03/2024", None, "NEFT-AXOMB01602020708-ACME CORP-SALARY", None, "50000.00", "59750.00"],
    ["3", "10/03/2024", "10/03/2024", "000123", "CHQ PAID-MR RAO", "1000.00", None, "58750.00"],
    [None, None, None, None, None, None, None, None],
    ["Legends Used in Account Statement", None, None, None, None, None, None, None],
    ["UPI - Unified Payments Interface", None, None, None, None, None, None, None],
]


@pytest.fixture
def icici_xls_rows():
    """Rows of a small ICICI debit spreadsheet."""
    return [list(row) for row in ICICI_XLS_ROWS]


@pytest.fixture
def icici_xlsx_bytes():
    """The sample ICICI debit spreadsheet as xlsx bytes."""
    return build_xlsx(ICICI_XLS_ROWS)


@pytest.fixture
def pdf_builder():
    """Function building PDF bytes from per-page line lists."""
    return build_pdf


@pytest.fixture
def xlsx_builder():
    """Function building xlsx bytes from rows."""
    return build_xlsx


@pytest.fixture
def debit_pdf_lines():
    """Reconstructed lines of an ICICI savings account PDF statement."""
    return [
        "MR. SANJAY SHANKAR",
        "Statement of Transactions in Savings Account Number: 000401234567 in INR for the period",
        "March 1, 2024 - March 31, 2024",
        "DATE MODE PARTICULARS DEPOSITS WITHDRAWALS BALANCE",
        "01-03-2024 B/F 4,900.00",
        "UPI/SWIGGY/xyz@bank",
        "01-03-2024 300.00 0.00 5,200.00",
        "UPI/ZOMATO/zomato@hdfc/Payment",
        "02-03-2024 250.00 4,950.00",
        "from Phone",
        "NEFT-AXOMB01602020708-ACME CORP-SALARY",
        "05-03-2024 50,000.00 54,950.00",
        "Page 1 of 2",
        "DATE MODE PARTICULARS DEPOSITS WITHDRAWALS BALANCE",
        "NFS/ATM WDL/MUMBAI",
        "07-03-2024 2,000.00 52,950.00",
        "Total: 50,300.00 2,250.00",
        "Account Related Other Information",
        "10-03-2024 IGNORED 1.00 2.00",
    ]


@pytest.fixture
def credit_pdf_lines():
    """Reconstructed lines of an ICICI credit card PDF statement."""
    return [
        "MR. ANITA RAO",
        "Statement period : February 20, 2024 to March 19, 2024",
        "Card Number 4315 XXXX XXXX 1234",
        "Date SerNo. Transaction Details Reward Points Intl.# amount Amount (in Rs)",
        "01/03/2024 12345678 AMAZON PAY 120 1.50 USD 450.00",
        "03/03/2024 12345679 SWIGGY BANGALORE IN 8 320.00",
        "05/03/2024 12345680 PAYMENT RECEIVED - THANK YOU 0 5,000.00 CR",
        "07/03/2024 12345681 UBER INDIA",
        "SYSTEMS 12 180.50",
        "Page 1 of 3",
        "EARNINGS",
        "Cashback earned 150 Cashback transferred 100",
        "SPENDS OVERVIEW",
        "09/03/2024 99999999 NOT A LEDGER LINE",
    ]


@pytest.fixture
def food_rule():
    """Keyword rule matching food delivery apps."""
    return CategorizationRule(10, "food", RuleType.KEYWORD, "ZOMATO|SWIGGY")
