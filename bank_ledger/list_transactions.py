"""Print the ledger's transactions, newest first.

Amounts and timestamps are formatted per the ``display`` section of the
configuration; the largest incoming transaction is marked with ``*``.

Usage:
    bank-ledger-list [OPTIONS]

Examples:
    bank-ledger-list
    bank-ledger-list --format json --config config/ledger.yaml
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from bank_ledger.ingestion.loader import connect, create_tables, list_transactions
from bank_ledger.lib.api_error import map_exception
from bank_ledger.lib.config_loader import load_config
from bank_ledger.lib.logging_config import setup_logging
from bank_ledger.view.formatter import DisplayFormat, build_transaction_rows, render_table


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the listing.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="List ledger transactions, newest first.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help="Path to DuckDB database file (default: store.db_path from config)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the listing.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = parse_args(argv)
    config = load_config(args.config)
    logger = setup_logging(config["logging"]["level"])
    display = DisplayFormat.from_config(config["display"])
    db_path = args.db_path or config["store"]["db_path"]

    logger.info("Listing transactions from %s", db_path)

    try:
        conn = connect(db_path)
        try:
            create_tables(conn)
            transactions = list_transactions(conn)
        finally:
            conn.close()
    except Exception as exc:
        error, _ = map_exception(exc)
        print(error.to_json())
        return 1

    rows = build_transaction_rows(transactions, display=display)
    if args.format == "json":
        print(json.dumps([asdict(row) for row in rows], indent=2))
    else:
        print(render_table(rows))
    return 0


if __name__ == "__main__":
    sys.exit(main())
