"""
Integration tests for statement import.

Builds real statement files (xlsx via openpyxl, PDF via reportlab) and
runs them through routing, parsing, merchant extraction and
categorization.
"""

from datetime import date
from decimal import Decimal

from spendscope.core.fingerprint import compute_file_hash
from spendscope.parsers.bank.models import StatementType
from spendscope.services.categorization import (
    DEFAULT_RULES,
    HistoricalCategorizedTransaction,
    PaymentMethod,
    import_file,
    import_statement,
    recategorize_transactions,
)

HEADER = [
    "S No.", "Value Date", "Transaction Date", "Cheque Number", "Transaction Remarks",
    "Withdrawal Amount (INR )", "Deposit Amount (INR )", "Balance (INR )",
]


class TestTabularDebit:
    """A spreadsheet row flows through to a categorized transaction."""

    def test_zomato_row(self, xlsx_builder, food_rule):
        data = xlsx_builder([
            HEADER,
            ["1", "01/03/2024", "01/03/2024", "", "UPI/ZOMATO/abc@bank", "250.00", "", "9750.00"],
        ])
        result = import_statement(data, "debit", rules=[food_rule])

        assert result.success is True
        txn = result.transactions[0]
        assert txn.serial_no == 1
        assert txn.withdrawal_amount == Decimal("250.00")
        assert txn.deposit_amount == Decimal("0")
        assert txn.balance == Decimal("9750.00")
        assert txn.merchant_name == "ZOMATO"
        assert txn.payment_method is PaymentMethod.UPI
        assert txn.category_id == "food"

    def test_reupload_same_hash(self, tmp_path, icici_xlsx_bytes):
        """The same bytes under another name carry the same fingerprint."""
        a = tmp_path / "march.xlsx"
        b = tmp_path / "march (1).xlsx"
        a.write_bytes(icici_xlsx_bytes)
        b.write_bytes(icici_xlsx_bytes)

        first = import_file(a, "debit")
        second = import_file(b, "debit")

        assert first.statement.file_hash == second.statement.file_hash
        assert first.statement.file_hash == compute_file_hash(icici_xlsx_bytes)


class TestDebitPdf:
    """Debit PDF blocks are reconciled against the running balance."""

    def test_swiggy_deposit_falls_back_to_income(self, pdf_builder):
        data = pdf_builder([[
            "DATE MODE PARTICULARS DEPOSITS WITHDRAWALS BALANCE",
            "01-03-24 B/F 4,900.00",
            "UPI/SWIGGY/xyz@bank",
            "01-03-24 300.00 0.00 5200.00",
        ]])
        result = import_statement(data, "debit", rules=[])

        assert result.success is True
        txn = result.transactions[0]
        assert txn.deposit_amount == Decimal("300.00")
        assert txn.withdrawal_amount == Decimal("0")
        assert txn.balance == Decimal("5200.00")
        assert txn.transaction_date == date(2024, 3, 1)
        assert txn.category_id == "income"

    def test_full_statement(self, pdf_builder, debit_pdf_lines):
        data = pdf_builder([debit_pdf_lines[:12], debit_pdf_lines[12:]])
        result = import_statement(data, "debit", rules=DEFAULT_RULES, filename="statement.pdf")

        assert result.success is True
        assert result.warnings == []
        statement = result.statement
        assert statement.statement_type is StatementType.DEBIT
        assert statement.opening_balance == Decimal("4900.00")
        assert statement.closing_balance == Decimal("52950.00")

        by_serial = {t.serial_no: t for t in result.transactions}
        assert by_serial[2].merchant_name == "ZOMATO"
        assert by_serial[2].category_id == "restaurants"
        assert by_serial[3].category_id == "salary"
        assert by_serial[4].payment_method is PaymentMethod.ATM
        assert by_serial[4].category_id == "transfers"


class TestCreditPdf:
    """Credit card ledger lines become card transactions."""

    def test_amazon_line(self, pdf_builder):
        data = pdf_builder([[
            "Date SerNo. Transaction Details Reward Points Intl.# amount Amount (in Rs)",
            "01/03/2024 12345678 AMAZON PAY 120 1.50 USD 450.00",
            "02/03/2024 12345679 AMAZON PAY 120 1.50 USD 450.00 CR",
        ]])
        result = import_statement(data, "credit")

        assert result.success is True
        debit, refund = result.transactions
        assert debit.withdrawal_amount == Decimal("450.00")
        assert debit.deposit_amount == Decimal("0")
        assert debit.reward_points == 120
        assert debit.payment_method is PaymentMethod.CARD
        assert debit.category_id == "shopping"
        assert refund.deposit_amount == Decimal("450.00")
        assert refund.withdrawal_amount == Decimal("0")

    def test_full_statement(self, pdf_builder, credit_pdf_lines):
        result = import_statement(pdf_builder([credit_pdf_lines]), "credit")

        statement = result.statement
        assert statement.account_number == "4315XXXXXXXX1234"
        assert statement.cashback_earned == Decimal("150")
        assert len(result.transactions) == 4
        assert result.transactions[1].category_id == "restaurants"
        assert result.transactions[3].category_id == "transport"


class TestLearningFromHistory:
    """Stored categorizations steer later imports."""

    def test_history_then_recategorize(self, icici_xlsx_bytes):
        history = [
            HistoricalCategorizedTransaction("CHQ PAID-MR RAO", "CHQ PAID", "rent"),
            HistoricalCategorizedTransaction("CHQ PAID-MR RAO", "CHQ PAID", "rent"),
        ]
        result = import_statement(icici_xlsx_bytes, "debit", rules=[], historical=history)
        categories = [t.category_id for t in result.transactions]
        assert categories == ["uncategorized", "salary", "rent"]

        result.transactions[0].user_category_override = "friends"
        updated = recategorize_transactions(result.transactions, DEFAULT_RULES)
        assert [t.effective_category for t in updated] == ["friends", "salary", "transfers"]
