"""
Statement processing pipeline.

Flow: bytes -> router -> ParsedStatement -> merchant extraction ->
categorization -> StatementImportResult.

Within one statement a merchant keeps the first non-uncategorized category
it was given, so the same payee is categorized consistently. Nothing is
cached across statements.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from spendscope.core.exceptions import StatementParseError
from spendscope.core.preferences import EngineConfig
from spendscope.parsers.bank.models import RawTransaction, StatementType
from spendscope.parsers.bank.router import parse_statement
from spendscope.parsers.bank.utils import calculate_balance_verification
from spendscope.services.categorization.category_rules import DEFAULT_RULES
from spendscope.services.categorization.engine import (
    MatchContext,
    build_merchant_hints,
    categorize_transaction,
)
from spendscope.services.categorization.merchant import (
    extract_card_merchant,
    extract_merchant,
    is_generic_merchant,
    merchant_key,
)
from spendscope.services.categorization.models import (
    UNCATEGORIZED,
    CategorizationRule,
    CategorizedTransaction,
    HistoricalCategorizedTransaction,
    MerchantInfo,
    StatementImportResult,
)

logger = logging.getLogger(__name__)


class StatementCategorizer:
    """
    Categorizes the transactions of one statement.

    Holds the merchant hints built for this run and the per-statement
    merchant -> category cache. Create a new instance per statement.
    """

    def __init__(
        self,
        rules: Sequence[CategorizationRule],
        historical: Optional[Iterable[HistoricalCategorizedTransaction]] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.rules = tuple(rules)
        self.config = config or EngineConfig.default()
        self.hints = build_merchant_hints(historical or [], self.config.categorization)
        self._session_cache: Dict[str, str] = {}

    def categorize(self, raw: RawTransaction, statement_type: StatementType) -> CategorizedTransaction:
        """Extract the merchant and assign a category to one transaction."""
        merchant = self._merchant_for(raw, statement_type)
        category_id = self._category_for(raw, merchant)
        return CategorizedTransaction.from_raw(raw, category_id, merchant, statement_type)

    @staticmethod
    def _merchant_for(raw: RawTransaction, statement_type: StatementType) -> MerchantInfo:
        if statement_type is StatementType.CREDIT:
            return extract_card_merchant(raw.remarks)
        return extract_merchant(raw.remarks)

    def _category_for(self, raw: RawTransaction, merchant: MerchantInfo) -> str:
        key = None
        if not is_generic_merchant(merchant.merchant):
            key = merchant_key(merchant.merchant) or None

        if key is not None and key in self._session_cache:
            return self._session_cache[key]

        context = MatchContext(
            remarks=raw.remarks,
            merchant_name=merchant.merchant,
            withdrawal_amount=raw.withdrawal_amount,
            deposit_amount=raw.deposit_amount,
            payment_method=merchant.method,
        )
        category_id = categorize_transaction(context, self.rules, self.hints, self.config.categorization)

        if key is not None and category_id != UNCATEGORIZED:
            self._session_cache[key] = category_id
        return category_id


def process_transactions(
    raw_transactions: Iterable[RawTransaction],
    rules: Sequence[CategorizationRule],
    statement_type: Union[StatementType, str],
    historical: Optional[Iterable[HistoricalCategorizedTransaction]] = None,
    config: Optional[EngineConfig] = None,
) -> List[CategorizedTransaction]:
    """
    Categorize the transactions of one parsed statement.

    Credit card statements take the merchant straight from the narration
    with method CARD; debit statements go through channel detection.
    """
    statement_type = StatementType.coerce(statement_type)
    categorizer = StatementCategorizer(rules, historical, config)
    return [categorizer.categorize(raw, statement_type) for raw in raw_transactions]


def recategorize_transactions(
    existing: Iterable[CategorizedTransaction],
    rules: Sequence[CategorizationRule],
    historical: Optional[Iterable[HistoricalCategorizedTransaction]] = None,
    config: Optional[EngineConfig] = None,
) -> List[CategorizedTransaction]:
    """
    Re-run categorization over stored transactions (e.g. after rule edits).

    Transactions carrying a user override are returned unchanged.
    """
    categorizer = StatementCategorizer(rules, historical, config)
    result = []
    kept = 0
    for txn in existing:
        if txn.user_category_override:
            result.append(txn)
            kept += 1
            continue
        fresh = categorizer.categorize(txn.to_raw(), txn.statement_type)
        result.append(txn.with_category(fresh.category_id, MerchantInfo(fresh.merchant_name, fresh.payment_method)))

    logger.info(f"Re-categorized {len(result) - kept} transactions, kept {kept} user overrides")
    return result


def import_statement(
    data: bytes,
    statement_type: Union[StatementType, str],
    rules: Optional[Sequence[CategorizationRule]] = None,
    historical: Optional[Iterable[HistoricalCategorizedTransaction]] = None,
    filename: Optional[str] = None,
    password: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> StatementImportResult:
    """
    Parse and categorize one statement file.

    Parse failures come back as a failed result carrying the error code and
    message; they are not retried.
    """
    config = config or EngineConfig.default()
    result = StatementImportResult(success=False, source_file=filename or "")

    try:
        statement = parse_statement(data, statement_type, filename=filename, password=password, config=config)
    except StatementParseError as e:
        logger.warning(f"Failed to parse {filename or 'statement'}: {e.message}")
        result.error_code = e.code
        result.add_error(e.message)
        return result

    rules = DEFAULT_RULES if rules is None else rules
    result.statement = statement
    result.transactions = process_transactions(
        statement.transactions, rules, statement.statement_type, historical, config
    )

    if statement.statement_type is StatementType.DEBIT:
        verification = calculate_balance_verification(
            statement.transactions,
            statement.opening_balance,
            tolerance=config.parsers.balance_tolerance_decimal,
        )
        for error in verification["errors"]:
            result.add_warning(error)

    result.success = True
    logger.info(
        f"Imported {result.source_file or statement.file_hash[:12]}: "
        f"{len(result.transactions)} transactions, {len(result.warnings)} warning(s)"
    )
    return result


def import_file(
    file_path: Union[str, Path],
    statement_type: Union[StatementType, str],
    rules: Optional[Sequence[CategorizationRule]] = None,
    historical: Optional[Iterable[HistoricalCategorizedTransaction]] = None,
    password: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> StatementImportResult:
    """Read a statement file from disk and import it."""
    file_path = Path(file_path)

    if not file_path.exists():
        return StatementImportResult(
            success=False,
            errors=[f"File not found: {file_path}"],
            error_code="FILE_NOT_FOUND",
            source_file=file_path.name,
        )

    return import_statement(
        file_path.read_bytes(),
        statement_type,
        rules=rules,
        historical=historical,
        filename=file_path.name,
        password=password,
        config=config,
    )
