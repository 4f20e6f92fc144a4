"""
Bank statement data models.

Dataclasses for representing parsed debit-account and credit-card statements.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, List
from enum import Enum


class StatementType(Enum):
    """Kind of statement being ingested."""

    DEBIT = "debit"
    CREDIT = "credit"

    @classmethod
    def coerce(cls, value) -> "StatementType":
        """Accept a StatementType or its string value ("debit"/"credit")."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class RawTransaction:
    """A single transaction as recovered from a statement."""

    serial_no: int
    value_date: date
    transaction_date: date
    remarks: str
    withdrawal_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    deposit_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    balance: Decimal = field(default_factory=lambda: Decimal("0"))
    cheque_number: Optional[str] = None
    reward_points: Optional[int] = None
    reference_number: Optional[str] = None

    def __post_init__(self):
        """Convert numeric types to Decimal."""
        self.withdrawal_amount = _to_decimal(self.withdrawal_amount)
        self.deposit_amount = _to_decimal(self.deposit_amount)
        self.balance = _to_decimal(self.balance)

    def to_dict(self) -> dict:
        """Convert to plain dictionary for the storage collaborator."""
        return {
            "serial_no": self.serial_no,
            "value_date": self.value_date.isoformat(),
            "transaction_date": self.transaction_date.isoformat(),
            "cheque_number": self.cheque_number,
            "remarks": self.remarks,
            "withdrawal_amount": str(self.withdrawal_amount),
            "deposit_amount": str(self.deposit_amount),
            "balance": str(self.balance),
            "reward_points": self.reward_points,
            "reference_number": self.reference_number,
        }


@dataclass
class ParsedStatement:
    """Result of parsing one statement file."""

    statement_type: StatementType
    account_number: str
    account_holder: str
    date_from: date
    date_to: date
    file_hash: str
    transactions: List[RawTransaction] = field(default_factory=list)
    opening_balance: Optional[Decimal] = None
    closing_balance: Optional[Decimal] = None
    currency: Optional[str] = None
    cashback_earned: Optional[Decimal] = None
    cashback_transferred: Optional[Decimal] = None
    source_file: str = ""

    def __post_init__(self):
        self.statement_type = StatementType.coerce(self.statement_type)
        for name in ("opening_balance", "closing_balance", "cashback_earned", "cashback_transferred"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, _to_decimal(value))

    @property
    def transaction_count(self) -> int:
        """Get number of transactions parsed."""
        return len(self.transactions)

    @property
    def total_withdrawals(self) -> Decimal:
        """Calculate total withdrawals."""
        return sum((t.withdrawal_amount for t in self.transactions), Decimal("0"))

    @property
    def total_deposits(self) -> Decimal:
        """Calculate total deposits."""
        return sum((t.deposit_amount for t in self.transactions), Decimal("0"))

    @property
    def masked_account_number(self) -> str:
        """Return masked account number: ****1234"""
        if len(self.account_number) < 4:
            return "*" * len(self.account_number)
        return f"****{self.account_number[-4:]}"

    def to_dict(self) -> dict:
        """Convert to dictionary (transactions included)."""
        def _opt(value):
            return str(value) if value is not None else None

        return {
            "statement_type": self.statement_type.value,
            "account_number": self.account_number,
            "account_holder": self.account_holder,
            "date_from": self.date_from.isoformat(),
            "date_to": self.date_to.isoformat(),
            "file_hash": self.file_hash,
            "opening_balance": _opt(self.opening_balance),
            "closing_balance": _opt(self.closing_balance),
            "currency": self.currency,
            "cashback_earned": _opt(self.cashback_earned),
            "cashback_transferred": _opt(self.cashback_transferred),
            "source_file": self.source_file,
            "transactions": [t.to_dict() for t in self.transactions],
        }
