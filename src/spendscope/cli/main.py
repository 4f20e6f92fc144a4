#!/usr/bin/env python3
"""
spendscope CLI - statement ingestion and categorization.

Usage:
    spendscope parse statement.xls --type debit
    spendscope parse card.pdf --type credit --password SECRET -o out.json
    spendscope parse statement.pdf --type debit --rules rules.json --history history.json
    spendscope hash statement.pdf
"""

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from spendscope.core.fingerprint import hash_file
from spendscope.core.preferences import EngineConfig
from spendscope.services.categorization.category_rules import DEFAULT_RULES, category_name, load_rules
from spendscope.services.categorization.models import HistoricalCategorizedTransaction
from spendscope.services.categorization.pipeline import import_file

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, debug: bool = False):
    """Configure logging."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def password_prompt(filename: str) -> Optional[str]:
    """Ask for a statement password on the terminal."""
    if not sys.stdin.isatty():
        return None
    return getpass.getpass(f"Password for {filename}: ") or None


def load_history(history_path: Path) -> List[HistoricalCategorizedTransaction]:
    """Load previously categorized transactions from a JSON list."""
    with open(history_path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("transactions", [])
    return [HistoricalCategorizedTransaction.from_dict(item) for item in data]


def cmd_parse(args) -> int:
    """Handle parse command - import one statement and print/write JSON."""
    config = EngineConfig.load(args.config) if args.config else EngineConfig.default()
    rules = load_rules(args.rules) if args.rules else DEFAULT_RULES
    history = load_history(Path(args.history)) if args.history else []

    file_path = Path(args.file)
    result = import_file(
        file_path, args.type, rules=rules, historical=history,
        password=args.password, config=config,
    )

    if result.error_code == "PASSWORD_PROTECTED" and not args.no_prompt:
        password = password_prompt(file_path.name)
        if password:
            result = import_file(
                file_path, args.type, rules=rules, historical=history,
                password=password, config=config,
            )

    if not result.success:
        print(f"Error [{result.error_code}]: {'; '.join(result.errors)}", file=sys.stderr)
        return 1

    output = json.dumps(result.to_dict(), indent=2)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Wrote {len(result.transactions)} transactions to {args.output}")
    else:
        print(output)

    if args.summary:
        _print_summary(result)

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    return 0


def _print_summary(result) -> None:
    """Print spend per category."""
    totals = {}
    for txn in result.transactions:
        totals.setdefault(txn.effective_category, 0)
        totals[txn.effective_category] += txn.withdrawal_amount

    statement = result.statement
    print(f"\n{statement.statement_type.value.title()} statement {statement.masked_account_number}: "
          f"{statement.date_from} to {statement.date_to}")
    print(f"  {'Withdrawals':<20} {statement.total_withdrawals:>14,.2f}")
    print(f"  {'Deposits':<20} {statement.total_deposits:>14,.2f}")
    for category_id, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True):
        print(f"  {category_name(category_id):<20} {amount:>14,.2f}")


def cmd_hash(args) -> int:
    """Handle hash command - print the content hash of a file."""
    file_path = Path(args.file)
    if not file_path.exists():
        print(f"File not found: {file_path}", file=sys.stderr)
        return 1
    print(hash_file(file_path))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='spendscope',
        description='spendscope - bank and credit card statement categorization',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  spendscope parse statement.xls --type debit
  spendscope parse card.pdf --type credit --password SECRET -o out.json
  spendscope hash statement.pdf
        """
    )

    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--debug', action='store_true', help='Debug output')

    subparsers = parser.add_subparsers(dest='command', help='Command')

    # parse command
    parse_parser = subparsers.add_parser('parse', help='Parse and categorize a statement')
    parse_parser.add_argument('file', help='Statement file (PDF, XLS/XLSX or CSV)')
    parse_parser.add_argument('--type', '-t', default='debit', choices=['debit', 'credit'],
                              help='Statement kind')
    parse_parser.add_argument('--password', '-p', help='PDF password')
    parse_parser.add_argument('--rules', '-r', help='Rules JSON file (default: built-in rules)')
    parse_parser.add_argument('--history', help='JSON list of previously categorized transactions')
    parse_parser.add_argument('--config', '-c', help='Engine config JSON file')
    parse_parser.add_argument('--output', '-o', help='Write JSON result to this file')
    parse_parser.add_argument('--summary', action='store_true', help='Print spend per category')
    parse_parser.add_argument('--no-prompt', action='store_true', help='Skip password prompts')

    # hash command
    hash_parser = subparsers.add_parser('hash', help='Print the content hash of a file')
    hash_parser.add_argument('file', help='File to hash')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.debug)

    try:
        if args.command == 'parse':
            return cmd_parse(args)
        elif args.command == 'hash':
            return cmd_hash(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled")
        return 130
    except (OSError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
