"""
Custom exceptions for spendscope.

All spendscope exceptions inherit from SpendScopeError for easy catching.

Exception hierarchy:
    SpendScopeError (base)
    ├── StatementParseError
    │   ├── UnsupportedFormatError
    │   ├── HeaderNotFoundError
    │   ├── NoTransactionsFoundError
    │   ├── PasswordProtectedError
    │   └── DocumentUnreadableError
    └── InvalidRuleExpressionError
"""


class SpendScopeError(Exception):
    """Base exception for all spendscope errors."""

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code


# ============================================================================
# Parsing Errors
# ============================================================================

class StatementParseError(SpendScopeError):
    """
    Error while parsing a statement file.

    Parse errors reflect malformed or unsupported input and are never
    retried; callers surface the message verbatim.
    """

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        super().__init__(message, code)


class UnsupportedFormatError(StatementParseError):
    """Raised when the file kind does not match the requested parser."""

    def __init__(self, message: str, code: str = "UNSUPPORTED_FORMAT"):
        super().__init__(message, code)


class HeaderNotFoundError(StatementParseError):
    """Raised when a tabular statement has no transaction header row."""

    def __init__(
        self,
        message: str = "Could not find transaction header row in the statement",
        code: str = "HEADER_NOT_FOUND"
    ):
        super().__init__(message, code)


class NoTransactionsFoundError(StatementParseError):
    """Raised when a parser completed but extracted zero valid records."""

    def __init__(self, statement_kind: str, code: str = "NO_TRANSACTIONS"):
        super().__init__(f"No transactions found in {statement_kind} statement", code)
        self.statement_kind = statement_kind


class PasswordProtectedError(StatementParseError):
    """
    PDF requires a password.

    Raised both when no password was supplied and when the supplied one
    is wrong, so the caller can ask the user for it.
    """

    def __init__(self, source: str = "PDF", code: str = "PASSWORD_PROTECTED"):
        super().__init__(
            f"{source} is password protected. Provide the statement password and try again.",
            code
        )
        self.source = source


class DocumentUnreadableError(StatementParseError):
    """Raised when a PDF is malformed or corrupt."""

    def __init__(self, message: str, code: str = "DOCUMENT_UNREADABLE"):
        super().__init__(message, code)


# ============================================================================
# Categorization Errors
# ============================================================================

class InvalidRuleExpressionError(SpendScopeError):
    """
    A regex-type rule failed to compile.

    Only raised by the rule compiler; the scoring engine catches it and
    treats the rule as a non-match.
    """

    def __init__(self, pattern: str, reason: str, code: str = "INVALID_RULE_EXPRESSION"):
        super().__init__(f"Invalid rule expression {pattern!r}: {reason}", code)
        self.pattern = pattern
        self.reason = reason
