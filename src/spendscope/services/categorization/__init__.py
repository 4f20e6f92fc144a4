"""
Transaction categorization for spendscope.

Usage:
    from spendscope.services.categorization import import_file, DEFAULT_RULES

    result = import_file("statement.xls", "debit", rules=DEFAULT_RULES)
    for txn in result.transactions:
        print(txn.merchant_name, txn.category_id)
"""

from .models import (
    CategorizationRule,
    CategorizedTransaction,
    HistoricalCategorizedTransaction,
    MerchantCategoryHint,
    MerchantInfo,
    PaymentMethod,
    RuleField,
    RuleType,
    StatementImportResult,
)
from .merchant import extract_card_merchant, extract_merchant, is_generic_merchant, merchant_key
from .category_rules import DEFAULT_CATEGORIES, DEFAULT_RULES, category_name, load_rules
from .engine import MatchContext, build_merchant_hints, categorize_transaction, score_rule, select_rule
from .pipeline import (
    StatementCategorizer,
    import_file,
    import_statement,
    process_transactions,
    recategorize_transactions,
)

__all__ = [
    "CategorizationRule",
    "CategorizedTransaction",
    "HistoricalCategorizedTransaction",
    "MerchantCategoryHint",
    "MerchantInfo",
    "PaymentMethod",
    "RuleField",
    "RuleType",
    "StatementImportResult",
    "extract_card_merchant",
    "extract_merchant",
    "is_generic_merchant",
    "merchant_key",
    "DEFAULT_CATEGORIES",
    "DEFAULT_RULES",
    "category_name",
    "load_rules",
    "MatchContext",
    "build_merchant_hints",
    "categorize_transaction",
    "score_rule",
    "select_rule",
    "StatementCategorizer",
    "import_file",
    "import_statement",
    "process_transactions",
    "recategorize_transactions",
]
