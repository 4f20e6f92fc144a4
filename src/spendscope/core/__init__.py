"""
Core module - Foundation components for spendscope.

Provides:
- Exception hierarchy with stable error codes
- Content fingerprinting for statement deduplication
- EngineConfig: JSON-backed parser and categorization tunables
"""

from spendscope.core.exceptions import (
    SpendScopeError,
    StatementParseError,
    UnsupportedFormatError,
    HeaderNotFoundError,
    NoTransactionsFoundError,
    PasswordProtectedError,
    DocumentUnreadableError,
    InvalidRuleExpressionError,
)
from spendscope.core.fingerprint import compute_file_hash, hash_file
from spendscope.core.preferences import (
    EngineConfig,
    ParserConfig,
    CategorizationConfig,
    DEFAULT_CONFIG,
)

__all__ = [
    "SpendScopeError",
    "StatementParseError",
    "UnsupportedFormatError",
    "HeaderNotFoundError",
    "NoTransactionsFoundError",
    "PasswordProtectedError",
    "DocumentUnreadableError",
    "InvalidRuleExpressionError",
    "compute_file_hash",
    "hash_file",
    "EngineConfig",
    "ParserConfig",
    "CategorizationConfig",
    "DEFAULT_CONFIG",
]
