"""
Data models for transaction categorization.

Rules, merchant info, categorized transactions and the import result handed
to the storage collaborator.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from spendscope.parsers.bank.models import ParsedStatement, RawTransaction, StatementType

UNCATEGORIZED = "uncategorized"


class PaymentMethod(Enum):
    """Payment channel derived from the narration."""
    UPI = "UPI"
    NEFT = "NEFT"
    IMPS = "IMPS"
    CARD = "CARD"
    ATM = "ATM"
    CHEQUE = "CHEQUE"
    OTHER = "OTHER"


class RuleType(Enum):
    """How a rule's pattern is matched."""
    KEYWORD = "keyword"
    REGEX = "regex"
    MERCHANT = "merchant"
    DEPOSIT = "deposit"
    AMOUNT = "amount"


class RuleField(Enum):
    """Transaction text a rule is matched against."""
    REMARKS = "remarks"
    MERCHANT = "merchant"


def _optional_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class CategorizationRule:
    """
    One categorization rule.

    Lower ``priority`` wins ties and earns a larger score boost. Amount
    bounds are inclusive and apply to every rule type.
    """
    priority: int
    category_id: str
    type: RuleType
    pattern: str = ""
    field: RuleField = RuleField.REMARKS
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, "type", RuleType(self.type))
        object.__setattr__(self, "field", RuleField(self.field))
        object.__setattr__(self, "pattern", self.pattern or "")
        object.__setattr__(self, "min_amount", _optional_decimal(self.min_amount))
        object.__setattr__(self, "max_amount", _optional_decimal(self.max_amount))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategorizationRule":
        """Build a rule from a camelCase or snake_case dictionary."""
        def get(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            priority=int(get("priority", default=100)),
            category_id=str(get("category_id", "categoryId")),
            type=get("type"),
            pattern=get("pattern", default=""),
            field=get("field", default="remarks"),
            min_amount=get("min_amount", "minAmount"),
            max_amount=get("max_amount", "maxAmount"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priority": self.priority,
            "category_id": self.category_id,
            "type": self.type.value,
            "pattern": self.pattern,
            "field": self.field.value,
            "min_amount": str(self.min_amount) if self.min_amount is not None else None,
            "max_amount": str(self.max_amount) if self.max_amount is not None else None,
        }


@dataclass(frozen=True)
class MerchantInfo:
    """Merchant name and payment channel extracted from a narration."""
    merchant: str
    method: PaymentMethod


@dataclass
class CategorizedTransaction:
    """A parsed transaction with merchant and category assigned."""
    serial_no: int
    value_date: date
    transaction_date: date
    remarks: str
    withdrawal_amount: Decimal
    deposit_amount: Decimal
    balance: Decimal
    category_id: str
    merchant_name: str
    payment_method: PaymentMethod
    statement_type: StatementType
    cheque_number: Optional[str] = None
    reward_points: Optional[int] = None
    reference_number: Optional[str] = None
    user_category_override: Optional[str] = None

    def __post_init__(self):
        """Convert numeric types to Decimal."""
        for name in ("withdrawal_amount", "deposit_amount", "balance"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                setattr(self, name, Decimal(str(value)))
        self.payment_method = PaymentMethod(self.payment_method)
        self.statement_type = StatementType.coerce(self.statement_type)

    @classmethod
    def from_raw(
        cls,
        raw: RawTransaction,
        category_id: str,
        merchant: MerchantInfo,
        statement_type: StatementType,
    ) -> "CategorizedTransaction":
        return cls(
            serial_no=raw.serial_no,
            value_date=raw.value_date,
            transaction_date=raw.transaction_date,
            remarks=raw.remarks,
            withdrawal_amount=raw.withdrawal_amount,
            deposit_amount=raw.deposit_amount,
            balance=raw.balance,
            category_id=category_id,
            merchant_name=merchant.merchant,
            payment_method=merchant.method,
            statement_type=statement_type,
            cheque_number=raw.cheque_number,
            reward_points=raw.reward_points,
            reference_number=raw.reference_number,
        )

    def to_raw(self) -> RawTransaction:
        """Project back onto the parsed transaction fields."""
        return RawTransaction(
            serial_no=self.serial_no,
            value_date=self.value_date,
            transaction_date=self.transaction_date,
            remarks=self.remarks,
            withdrawal_amount=self.withdrawal_amount,
            deposit_amount=self.deposit_amount,
            balance=self.balance,
            cheque_number=self.cheque_number,
            reward_points=self.reward_points,
            reference_number=self.reference_number,
        )

    def with_category(self, category_id: str, merchant: MerchantInfo) -> "CategorizedTransaction":
        """Copy with a new engine category; the user override is carried over."""
        return replace(
            self,
            category_id=category_id,
            merchant_name=merchant.merchant,
            payment_method=merchant.method,
        )

    @property
    def effective_category(self) -> str:
        """User override if present, else the engine's category."""
        return self.user_category_override or self.category_id

    def to_dict(self) -> Dict[str, Any]:
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
            "category_id": self.category_id,
            "user_category_override": self.user_category_override,
            "merchant_name": self.merchant_name,
            "payment_method": self.payment_method.value,
            "statement_type": self.statement_type.value,
        }


@dataclass(frozen=True)
class HistoricalCategorizedTransaction:
    """Previously stored transaction used to learn merchant hints."""
    remarks: str
    merchant_name: Optional[str]
    category_id: str
    user_category_override: Optional[str] = None
    withdrawal_amount: Decimal = Decimal("0")
    deposit_amount: Decimal = Decimal("0")

    @property
    def effective_category(self) -> str:
        return self.user_category_override or self.category_id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoricalCategorizedTransaction":
        """Build from a camelCase or snake_case dictionary."""
        def get(snake, camel, default=None):
            value = data.get(snake, data.get(camel))
            return default if value is None else value

        return cls(
            remarks=get("remarks", "remarks", ""),
            merchant_name=get("merchant_name", "merchantName"),
            category_id=get("category_id", "categoryId", UNCATEGORIZED),
            user_category_override=get("user_category_override", "userCategoryOverride"),
            withdrawal_amount=Decimal(str(get("withdrawal_amount", "withdrawalAmount", 0))),
            deposit_amount=Decimal(str(get("deposit_amount", "depositAmount", 0))),
        )


@dataclass(frozen=True)
class MerchantCategoryHint:
    """Majority category learned for one merchant."""
    category_id: str
    count: int
    confidence: float


@dataclass
class StatementImportResult:
    """Outcome of importing one statement file."""
    success: bool
    statement: Optional[ParsedStatement] = None
    transactions: List[CategorizedTransaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error_code: Optional[str] = None
    source_file: str = ""

    def add_error(self, error: str) -> None:
        """Add error message."""
        self.errors.append(error)
        self.success = False

    def add_warning(self, warning: str) -> None:
        """Add warning message."""
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "source_file": self.source_file,
            "error_code": self.error_code,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "statement": self.statement.to_dict() if self.statement else None,
            "transactions": [t.to_dict() for t in self.transactions],
        }
