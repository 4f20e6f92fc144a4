"""
Rule scoring categorization engine.

Every rule scores a transaction (0 = no match); the best rule wins if its
score clears the threshold. Otherwise the merchant's history decides, and
failing that a fixed fallback chain guarantees a category.

Scores:
    deposit   65 (no pattern) or 35 + keyword score, deposits only
    keyword   20 + keyword score
    regex     95
    merchant  100 (exact normalized match)
    amount    55 (matches purely through the amount bounds)

plus a priority boost of max(0, 25 - min(priority, 25)) * 0.7.
"""

import logging
import re
from collections import Counter, defaultdict
from decimal import Decimal
from functools import lru_cache
from typing import Dict, Iterable, NamedTuple, Optional, Pattern, Sequence, Tuple

from spendscope.core.exceptions import InvalidRuleExpressionError
from spendscope.core.preferences import CategorizationConfig
from spendscope.services.categorization.merchant import (
    extract_merchant,
    is_generic_merchant,
    merchant_key,
)
from spendscope.services.categorization.models import (
    UNCATEGORIZED,
    CategorizationRule,
    HistoricalCategorizedTransaction,
    MerchantCategoryHint,
    PaymentMethod,
    RuleField,
    RuleType,
)

logger = logging.getLogger(__name__)

WORD_MATCH_SCORE = 45
SUBSTRING_MATCH_SCORE = 28
KEYWORD_LENGTH_CAP = 20
KEYWORD_LENGTH_WEIGHT = 1.2

DEPOSIT_SCORE = 65
DEPOSIT_KEYWORD_SCORE = 35
KEYWORD_SCORE = 20
REGEX_SCORE = 95
MERCHANT_SCORE = 100
AMOUNT_SCORE = 55

PRIORITY_BOOST_CAP = 25
PRIORITY_BOOST_WEIGHT = 0.7

MIN_HINT_KEY_LENGTH = 3

TRANSFERS = "transfers"
SALARY = "salary"
REFUNDS = "refunds"
INCOME = "income"

TRANSFER_KEYWORDS = ("ATM", "CASH", "SELF TRANSFER")
SALARY_KEYWORDS = ("SALARY", "PAYROLL")
REFUND_KEYWORDS = ("REFUND", "REVERSAL", "CASHBACK", "REWARD")


class MatchContext(NamedTuple):
    """The transaction fields rules look at."""
    remarks: str
    merchant_name: str = ""
    withdrawal_amount: Decimal = Decimal("0")
    deposit_amount: Decimal = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.OTHER

    @property
    def amount(self) -> Decimal:
        """Transaction magnitude used by amount bounds."""
        return self.withdrawal_amount if self.withdrawal_amount > 0 else self.deposit_amount


def normalize_text(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (text or "").upper()).strip()


def _contains_word(text: str, keyword: str) -> bool:
    """Keyword bounded by non-alphanumerics (or the text edges)."""
    return re.search(r"(?<![A-Z0-9])" + re.escape(keyword) + r"(?![A-Z0-9])", text) is not None


def priority_boost(priority: int) -> float:
    """Lower priority number gives a larger boost, capped at 25 levels."""
    return max(0, PRIORITY_BOOST_CAP - min(priority, PRIORITY_BOOST_CAP)) * PRIORITY_BOOST_WEIGHT


def keyword_score(text: str, pattern: str) -> float:
    """
    Best score of the '|'-separated keywords against text.

    A keyword found at token boundaries scores 45 + boost, a bare substring
    28 + boost, where boost grows with keyword length. 0 when none match.
    """
    text = normalize_text(text)
    best = 0.0
    for raw_keyword in pattern.split("|"):
        keyword = normalize_text(raw_keyword)
        if not keyword or keyword not in text:
            continue
        boost = min(len(keyword.replace(" ", "")), KEYWORD_LENGTH_CAP) * KEYWORD_LENGTH_WEIGHT
        if _contains_word(text, keyword):
            score = WORD_MATCH_SCORE + boost
        else:
            score = SUBSTRING_MATCH_SCORE + boost
        best = max(best, score)
    return best


@lru_cache(maxsize=256)
def compile_rule_pattern(pattern: str) -> Pattern:
    """
    Compile a regex rule pattern (case-insensitive).

    Raises:
        InvalidRuleExpressionError: If the pattern is not a valid regex
    """
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise InvalidRuleExpressionError(pattern, str(e)) from e


def _within_amount_bounds(rule: CategorizationRule, amount: Decimal) -> bool:
    if rule.min_amount is not None and amount < rule.min_amount:
        return False
    if rule.max_amount is not None and amount > rule.max_amount:
        return False
    return True


def score_rule(rule: CategorizationRule, context: MatchContext) -> float:
    """Score one rule against a transaction; 0 means no match."""
    if not _within_amount_bounds(rule, context.amount):
        return 0.0

    boost = priority_boost(rule.priority)
    field_text = context.merchant_name if rule.field is RuleField.MERCHANT else context.remarks

    if rule.type is RuleType.DEPOSIT:
        if context.deposit_amount <= 0:
            return 0.0
        if not rule.pattern:
            return DEPOSIT_SCORE + boost
        matched = keyword_score(field_text, rule.pattern)
        return DEPOSIT_KEYWORD_SCORE + matched + boost if matched else 0.0

    if rule.type is RuleType.KEYWORD:
        matched = keyword_score(field_text, rule.pattern)
        return KEYWORD_SCORE + matched + boost if matched else 0.0

    if rule.type is RuleType.REGEX:
        try:
            regex = compile_rule_pattern(rule.pattern)
        except InvalidRuleExpressionError as e:
            logger.warning(f"Rule for '{rule.category_id}' ignored: {e.message}")
            return 0.0
        return REGEX_SCORE + boost if regex.search(normalize_text(field_text)) else 0.0

    if rule.type is RuleType.MERCHANT:
        text = normalize_text(field_text)
        return MERCHANT_SCORE + boost if text and text == normalize_text(rule.pattern) else 0.0

    if rule.type is RuleType.AMOUNT:
        return AMOUNT_SCORE + boost

    return 0.0


def select_rule(
    rules: Iterable[CategorizationRule],
    context: MatchContext,
) -> Optional[Tuple[CategorizationRule, float]]:
    """
    Pick the highest-scoring rule.

    Equal scores go to the lower priority number (earlier rule if that ties
    too). Returns None when no rule matches.
    """
    best: Optional[Tuple[CategorizationRule, float]] = None
    for rule in rules:
        score = score_rule(rule, context)
        if score <= 0:
            continue
        if best is None or score > best[1] or (score == best[1] and rule.priority < best[0].priority):
            best = (rule, score)
    return best


def hint_qualifies(count: int, confidence: float, config: Optional[CategorizationConfig] = None) -> bool:
    """Check a merchant's majority category against the hint thresholds."""
    config = config or CategorizationConfig()
    return count >= config.hint_min_count and confidence + 1e-9 >= config.hint_min_confidence


def build_merchant_hints(
    historical: Iterable[HistoricalCategorizedTransaction],
    config: Optional[CategorizationConfig] = None,
) -> Dict[str, MerchantCategoryHint]:
    """
    Learn merchant -> category hints from previously categorized transactions.

    The user override counts as the category when present. Uncategorized
    entries, fallback merchant labels and keys shorter than 3 characters are
    skipped; each merchant keeps its majority category only when it meets
    the count and confidence thresholds.
    """
    counts: Dict[str, Counter] = defaultdict(Counter)

    for txn in historical:
        category_id = txn.effective_category
        if not category_id or category_id == UNCATEGORIZED:
            continue
        name = txn.merchant_name or extract_merchant(txn.remarks).merchant
        if is_generic_merchant(name):
            continue
        key = merchant_key(name)
        if len(key) < MIN_HINT_KEY_LENGTH:
            continue
        counts[key][category_id] += 1

    hints = {}
    for key, counter in counts.items():
        total = sum(counter.values())
        category_id, count = counter.most_common(1)[0]
        confidence = count / total
        if hint_qualifies(count, confidence, config):
            hints[key] = MerchantCategoryHint(category_id, count, confidence)

    logger.debug(f"Built {len(hints)} merchant hints from {len(counts)} merchants")
    return hints


def fallback_category(context: MatchContext) -> str:
    """Fixed fallbacks when neither rules nor history decide."""
    text = normalize_text(context.remarks)

    if context.payment_method is PaymentMethod.ATM or any(_contains_word(text, k) for k in TRANSFER_KEYWORDS):
        return TRANSFERS

    if context.deposit_amount > 0:
        if any(k in text for k in SALARY_KEYWORDS):
            return SALARY
        if any(k in text for k in REFUND_KEYWORDS):
            return REFUNDS
        return INCOME

    return UNCATEGORIZED


def categorize_transaction(
    context: MatchContext,
    rules: Sequence[CategorizationRule],
    hints: Optional[Dict[str, MerchantCategoryHint]] = None,
    config: Optional[CategorizationConfig] = None,
) -> str:
    """
    Assign a category id to one transaction. Never raises.

    Order: best rule (score >= threshold), merchant hint, fallbacks.
    """
    config = config or CategorizationConfig()

    selected = select_rule(rules, context)
    if selected is not None:
        rule, score = selected
        if score >= config.rule_score_threshold:
            return rule.category_id
        logger.debug(f"Best rule '{rule.category_id}' scored {score:.1f}, below threshold")

    if hints and not is_generic_merchant(context.merchant_name):
        hint = hints.get(merchant_key(context.merchant_name))
        if hint is not None and hint_qualifies(hint.count, hint.confidence, config):
            return hint.category_id

    return fallback_category(context)
