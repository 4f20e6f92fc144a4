"""
ICICI Bank savings account PDF statement parser.

The PDF table has the columns DATE | MODE | PARTICULARS | DEPOSITS |
WITHDRAWALS | BALANCE, but after text-layout reconstruction a single
transaction is spread across several lines: narration lines printed above
the date ("prelude"), the date line carrying the amounts, and wrapped
narration below it ("trailing").

Lines are fed one at a time through ``step()``, a transition function over
a small tagged-union state:

    ScanningPrelude -> PendingPrelude <-> AccumulatingBlock -> Done

Each completed block is then turned into a transaction by reconciling its
trailing amounts against the running balance.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from spendscope.core.exceptions import NoTransactionsFoundError
from spendscope.parsers.bank.base import BankStatementParser
from spendscope.parsers.bank.models import ParsedStatement, RawTransaction, StatementType
from spendscope.parsers.bank.pdf_lines import flatten_lines
from spendscope.parsers.bank.utils import collapse_whitespace, compact

logger = logging.getLogger(__name__)

# DD-MM-YY or DD-MM-YYYY at line start; OCR/layout may split digits with spaces.
# A spaced four-digit year must start 19/20 and not run into an amount.
DATE_LINE_RE = re.compile(
    r"^\s*(\d\s?\d)\s?-\s?(\d\s?\d)\s?-\s?"
    r"((?:1\s?9|2\s?0)\s?\d\s?\d(?![\d.,])|\d\s?\d)(?!\d)"
)

# Two-decimal amount, optionally negative or parenthesized, optional CR/DR marker
AMOUNT_RE = re.compile(r"(\()?(-)?(\d[\d,]*\.\d{2})\)?(?:\s*(CR|DR)\b)?(?![\d.])", re.IGNORECASE)

TOTAL_RE = re.compile(r"^\s*total\b", re.IGNORECASE)

# Channel prefixes that open a new narration (and therefore a new block)
NARRATION_PREFIXES = (
    "UPI/", "NEFT", "MMT/", "BIL/", "VIN/", "ATM", "NFS/", "RTGS",
    "ACH/", "INF/", "CMS/", "CLG/", "BY ", "TO ",
)

# Compacted prefixes of table furniture that never belong to a narration
BOILERPLATE_PREFIXES = (
    "OPENINGBALANCE", "CLOSINGBALANCE", "PAGE", "STATEMENTOFTRANSACTIONS",
    "LEGENDS", "WWW.ICICIBANK", "NEVERSHAREYOUR", "PLEASECALL", "THISISA",
    "CUSTOMERCARE", "SINCERELY",
)

END_MARKER = "ACCOUNTRELATEDOTHERINFORMATION"
BROUGHT_FORWARD = "B/F"

# Short tokens that are real words, not fragments split off a longer word
STANDALONE_SHORT_TOKENS = frozenset({
    "TO", "OF", "IN", "ON", "AT", "BY", "OR", "AN", "CO", "PV", "LT",
    "MR", "MS", "DR", "SB", "NO", "&",
})


# ============================================================================
# Line classification
# ============================================================================

class LineKind(Enum):
    """What a reconstructed line means to the block grammar."""

    COLUMN_HEADER = "column_header"
    DATE = "date"
    END = "end"
    TOTAL = "total"
    BOILERPLATE = "boilerplate"
    NARRATION_START = "narration_start"
    TEXT = "text"


def is_column_header(line: str) -> bool:
    """Check for the DATE/MODE/PARTICULARS/... table header."""
    text = compact(line)
    return "PARTICULARS" in text and "BALANCE" in text and ("DEPOSIT" in text or "WITHDRAWAL" in text)


def parse_line_date(line: str) -> Optional[date]:
    """Parse the leading DD-MM-YY(YY) date of a line, or None."""
    match = DATE_LINE_RE.match(line)
    if not match:
        return None
    day, month, year = (int(g.replace(" ", "")) for g in match.groups())
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def classify_line(line: str) -> LineKind:
    """Classify one reconstructed line."""
    text = compact(line)

    if END_MARKER in text:
        return LineKind.END
    if is_column_header(line):
        return LineKind.COLUMN_HEADER
    if parse_line_date(line) is not None:
        return LineKind.DATE
    if TOTAL_RE.match(line) and AMOUNT_RE.search(line):
        return LineKind.TOTAL
    if text.startswith(BOILERPLATE_PREFIXES):
        return LineKind.BOILERPLATE
    if line.lstrip().upper().startswith(NARRATION_PREFIXES):
        return LineKind.NARRATION_START
    return LineKind.TEXT


# ============================================================================
# State machine
# ============================================================================

@dataclass(frozen=True)
class ScanningPrelude:
    """Before the transaction table (statement header area)."""


@dataclass(frozen=True)
class PendingPrelude:
    """Inside the table, collecting narration lines ahead of a date line."""
    prelude: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AccumulatingBlock:
    """A date line has been seen; collecting its trailing narration."""
    prelude: Tuple[str, ...]
    date_line: str
    trailing: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Done:
    """Past the end of the transaction table."""


ParserState = Union[ScanningPrelude, PendingPrelude, AccumulatingBlock, Done]


@dataclass(frozen=True)
class TransactionBlock:
    """All lines belonging to one transaction."""
    prelude: Tuple[str, ...]
    date_line: str
    trailing: Tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return " ".join(self.prelude + (self.date_line,) + self.trailing)


class Transition(NamedTuple):
    state: ParserState
    block: Optional[TransactionBlock] = None
    total_line: Optional[str] = None


def _close(state: AccumulatingBlock) -> TransactionBlock:
    return TransactionBlock(state.prelude, state.date_line, state.trailing)


def has_inline_narration(date_line: str) -> bool:
    """Check whether a date line carries text between its date(s) and its amounts."""
    match = DATE_LINE_RE.match(date_line)
    remainder = date_line[match.end():] if match else date_line
    second = DATE_LINE_RE.match(remainder)
    if second:
        remainder = remainder[second.end():]
    amount = AMOUNT_RE.search(remainder)
    if amount:
        remainder = remainder[:amount.start()]
    return re.search(r"[A-Za-z]", remainder) is not None


def _hand_over_trailing(
    state: AccumulatingBlock,
    next_date_line: str,
    prelude_limit: int,
) -> Tuple[AccumulatingBlock, Tuple[str, ...]]:
    """
    Move trailing text of the open block ahead of a bare date line.

    A date line without narration of its own takes the last
    ``prelude_limit`` non-channel lines as its prelude. The closing block
    keeps its first trailing line when it has no other narration.
    """
    if prelude_limit <= 0 or not state.trailing or has_inline_narration(next_date_line):
        return state, ()
    keep = 0 if state.prelude or has_inline_narration(state.date_line) else 1
    carried = state.trailing[keep:][-prelude_limit:]
    if not carried:
        return state, ()
    kept = state.trailing[:len(state.trailing) - len(carried)]
    return AccumulatingBlock(state.prelude, state.date_line, kept), carried


def step(state: ParserState, line: str, prelude_limit: int = 2) -> Transition:
    """
    Advance the block grammar by one line.

    Returns the next state plus, when a block was completed by this line,
    the finalized block. Total banners are reported through ``total_line``.
    """
    if isinstance(state, Done):
        return Transition(state)

    kind = classify_line(line)

    if isinstance(state, ScanningPrelude):
        if kind is LineKind.COLUMN_HEADER:
            return Transition(PendingPrelude())
        if kind is LineKind.DATE:
            return Transition(AccumulatingBlock((), line))
        return Transition(state)

    if isinstance(state, PendingPrelude):
        if kind is LineKind.DATE:
            return Transition(AccumulatingBlock(state.prelude, line))
        if kind is LineKind.END:
            return Transition(Done())
        if kind is LineKind.TOTAL:
            return Transition(PendingPrelude(), total_line=line)
        if kind in (LineKind.COLUMN_HEADER, LineKind.BOILERPLATE):
            return Transition(state)
        prelude = (state.prelude + (line,))[-prelude_limit:] if prelude_limit > 0 else ()
        return Transition(PendingPrelude(prelude))

    # AccumulatingBlock
    if kind is LineKind.DATE:
        closing, prelude = _hand_over_trailing(state, line, prelude_limit)
        return Transition(AccumulatingBlock(prelude, line), block=_close(closing))
    if kind is LineKind.NARRATION_START:
        prelude = (line,) if prelude_limit > 0 else ()
        return Transition(PendingPrelude(prelude), block=_close(state))
    if kind is LineKind.TOTAL:
        return Transition(PendingPrelude(), block=_close(state), total_line=line)
    if kind is LineKind.END:
        return Transition(Done(), block=_close(state))
    if kind in (LineKind.COLUMN_HEADER, LineKind.BOILERPLATE):
        return Transition(state)
    return Transition(AccumulatingBlock(state.prelude, state.date_line, state.trailing + (line,)))


def finish(state: ParserState) -> Optional[TransactionBlock]:
    """Flush the block still open at end of input."""
    if isinstance(state, AccumulatingBlock):
        return _close(state)
    return None


def split_blocks(lines: List[str], prelude_limit: int = 2) -> Tuple[List[TransactionBlock], List[str]]:
    """
    Run the grammar over all lines.

    Returns:
        Tuple of (blocks in order, total banner lines in order)
    """
    state: ParserState = ScanningPrelude()
    blocks: List[TransactionBlock] = []
    totals: List[str] = []

    for line in lines:
        transition = step(state, line, prelude_limit)
        state = transition.state
        if transition.block is not None:
            blocks.append(transition.block)
        if transition.total_line is not None:
            totals.append(transition.total_line)

    last = finish(state)
    if last is not None:
        blocks.append(last)

    return blocks, totals


# ============================================================================
# Amounts and narration
# ============================================================================

@dataclass
class AmountToken:
    """A two-decimal amount found in block text."""
    value: Decimal
    marker: Optional[str] = None  # "CR" / "DR"
    start: int = 0

    @property
    def magnitude(self) -> Decimal:
        return abs(self.value)


def find_amounts(text: str) -> List[AmountToken]:
    """Find all two-decimal amount tokens in text."""
    tokens = []
    for match in AMOUNT_RE.finditer(text):
        paren, minus, digits, marker = match.groups()
        value = Decimal(digits.replace(",", ""))
        if paren or minus:
            value = -value
        tokens.append(AmountToken(value, marker.upper() if marker else None, match.start()))
    return tokens


def _rejoin_tokens(tokens: List[str]) -> List[str]:
    """Glue word fragments produced by inconsistent PDF word spacing."""
    joined: List[str] = []
    fragment_open = False
    for token in tokens:
        if joined:
            prev = joined[-1]
            glue = (
                len(token) == 1 and token not in STANDALONE_SHORT_TOKENS
                or fragment_open
                or (len(prev) >= 4 and len(token) <= 2 and token.upper() not in STANDALONE_SHORT_TOKENS)
            )
            if glue:
                joined[-1] = prev + token
                fragment_open = False
                continue
        joined.append(token)
        fragment_open = len(token) == 1 and token not in STANDALONE_SHORT_TOKENS
    return joined


def _dehyphenate(text: str) -> str:
    """Replace hyphens that touch whitespace or punctuation with spaces."""
    text = re.sub(r"(?<=[\W_])-|-(?=[\W_])|^-|-$", " ", text)
    return collapse_whitespace(text)


def summarize_narration(text: str) -> str:
    """
    Clean a reconstructed narration.

    Splits on "/" and rejoins fragments in each segment. The first and third
    segments (channel and reference/VPA) are compacted with no spaces, the
    second (counterparty name) keeps spacing but loses stray hyphens.
    """
    text = collapse_whitespace(text)
    if not text:
        return ""
    if "/" not in text:
        return " ".join(_rejoin_tokens(text.split()))

    segments = []
    for index, segment in enumerate(text.split("/")):
        tokens = _rejoin_tokens(segment.split())
        if index in (0, 2):
            segments.append("".join(tokens))
        elif index == 1:
            segments.append(_dehyphenate(" ".join(tokens)))
        else:
            segments.append(" ".join(tokens))
    return "/".join(segments)


# ============================================================================
# Parser
# ============================================================================

@dataclass
class _Ledger:
    """Running state while finalizing blocks."""
    previous_balance: Optional[Decimal] = None
    opening_balance: Optional[Decimal] = None
    total_closing: Optional[Decimal] = None
    transactions: List[RawTransaction] = field(default_factory=list)


class ICICIPdfParser(BankStatementParser):
    """Parser for ICICI Bank savings account PDF statements."""

    BANK_NAME = "ICICI Bank"
    STATEMENT_TYPE = StatementType.DEBIT

    ACCOUNT_NUMBER_PATTERN = re.compile(r"\b([Xx\d]{5,}\d{4})\b")
    PERIOD_ANCHORS = ("for the period", "statement period", "statement of transactions", "from")

    def _read_content(self, data: bytes, password: Optional[str], source_file: str) -> Dict[str, Any]:
        """Read all pages as reconstructed lines."""
        return self._read_pdf(data, password)

    def _parse_content(self, content: Dict[str, Any], file_hash: str) -> ParsedStatement:
        """Parse ICICI debit PDF content."""
        return self.parse_lines(flatten_lines(content.get("pages") or []), file_hash)

    def parse_lines(self, lines: List[str], file_hash: str = "") -> ParsedStatement:
        """
        Parse reconstructed statement lines.

        Raises:
            NoTransactionsFoundError: If no block yields a transaction
        """
        blocks, totals = split_blocks(lines, self.config.parsers.prelude_line_limit)
        logger.debug(f"Split {len(lines)} lines into {len(blocks)} blocks, {len(totals)} total banner(s)")

        ledger = _Ledger()
        for block in blocks:
            self._finalize_block(block, ledger)

        for total_line in totals:
            self._apply_total(total_line, ledger)

        if not ledger.transactions:
            raise NoTransactionsFoundError("debit PDF")

        declared_from, declared_to = self._find_declared_period(lines, self.PERIOD_ANCHORS)
        date_from, date_to = self._resolve_period(declared_from, declared_to, ledger.transactions)

        closing = ledger.total_closing
        if closing is None:
            closing = ledger.transactions[-1].balance

        return ParsedStatement(
            statement_type=self.STATEMENT_TYPE,
            account_number=self._find_account_number(lines),
            account_holder=self._find_account_holder(lines),
            date_from=date_from,
            date_to=date_to,
            file_hash=file_hash,
            transactions=ledger.transactions,
            opening_balance=ledger.opening_balance,
            closing_balance=closing,
            currency="INR",
        )

    def _finalize_block(self, block: TransactionBlock, ledger: _Ledger) -> None:
        """Turn one block into a transaction (or a B/F opening balance)."""
        match = DATE_LINE_RE.match(block.date_line)
        txn_date = parse_line_date(block.date_line)
        remainder = block.date_line[match.end():] if match else block.date_line

        # Optional second leading date is the value date
        value_date = parse_line_date(remainder)
        if value_date is not None:
            remainder = remainder[DATE_LINE_RE.match(remainder).end():]

        if BROUGHT_FORWARD in compact(remainder):
            tokens = find_amounts(remainder) or find_amounts(block.text)
            if tokens:
                ledger.opening_balance = tokens[-1].value
                ledger.previous_balance = tokens[-1].value
                logger.debug(f"Brought-forward balance {tokens[-1].value} on {txn_date}")
            return

        line_tokens = find_amounts(remainder)
        if len(line_tokens) >= 2:
            tokens = line_tokens[-3:]
            narration_middle = remainder[:tokens[0].start]
        else:
            tokens = find_amounts(block.text)[-3:]
            narration_middle = AMOUNT_RE.sub(" ", remainder)

        if len(tokens) < 2:
            logger.debug(f"Skipping block without amounts: {block.date_line!r}")
            return

        deposit, withdrawal, balance = self._resolve_amounts(tokens, ledger)

        if deposit == withdrawal:
            logger.debug(f"Discarding net-zero block on {txn_date}: {block.date_line!r}")
            return

        narration = " ".join(block.prelude + (narration_middle,) + block.trailing)
        ledger.transactions.append(RawTransaction(
            serial_no=len(ledger.transactions) + 1,
            value_date=value_date or txn_date,
            transaction_date=txn_date,
            remarks=summarize_narration(narration),
            withdrawal_amount=withdrawal,
            deposit_amount=deposit,
            balance=balance,
        ))
        ledger.previous_balance = balance

    def _resolve_amounts(self, tokens: List[AmountToken], ledger: _Ledger) -> Tuple[Decimal, Decimal, Decimal]:
        """
        Decide deposit / withdrawal / balance from the trailing amounts.

        Three tokens read as deposit, withdrawal, balance and are checked
        against the previous balance (swapped, then derived from the balance
        delta when they do not reconcile). Two tokens are a single amount
        whose direction comes from the balance delta.
        """
        tolerance = self.config.parsers.balance_tolerance_decimal
        previous = ledger.previous_balance
        zero = Decimal("0")
        balance = tokens[-1].value

        if len(tokens) == 3:
            deposit, withdrawal = tokens[0].magnitude, tokens[1].magnitude
            if previous is None:
                return deposit, withdrawal, balance
            if abs(previous + deposit - withdrawal - balance) <= tolerance:
                return deposit, withdrawal, balance
            if abs(previous + withdrawal - deposit - balance) <= tolerance:
                logger.debug(f"Swapped deposit/withdrawal to reconcile balance {balance}")
                return withdrawal, deposit, balance
            delta = balance - previous
            logger.debug(f"Deriving amounts from balance delta {delta}")
            return (delta if delta > zero else zero), (-delta if delta < zero else zero), balance

        amount_token = tokens[0]
        amount = amount_token.magnitude

        if previous is not None:
            delta = balance - previous
            if delta > tolerance:
                return amount, zero, balance
            if delta < -tolerance:
                return zero, amount, balance
            # Balance did not move: compare with the carried-forward opening
            # balance; a tie is recorded as a withdrawal.
            if ledger.opening_balance is not None and balance > ledger.opening_balance:
                return amount, zero, balance
            return zero, amount, balance

        if amount_token.marker == "CR":
            return amount, zero, balance
        return zero, amount, balance

    def _apply_total(self, line: str, ledger: _Ledger) -> None:
        """Take the closing balance from a Total banner when it carries one."""
        tokens = find_amounts(line)
        if len(tokens) >= 3 or len(tokens) == 1:
            ledger.total_closing = tokens[-1].value

    def _find_account_number(self, lines: List[str]) -> str:
        """Find the account number on an 'account' line."""
        for line in lines:
            lowered = line.lower()
            if "account" in lowered or "a/c" in lowered:
                match = self.ACCOUNT_NUMBER_PATTERN.search(line)
                if match:
                    return match.group(1)
        return ""
