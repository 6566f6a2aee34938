"""Import a bank-transaction CSV file into the local DuckDB ledger.

The CSV must start with a ``reference,timestamp,amount,currency,description``
header. The whole file is validated before anything is written; on any error
nothing is stored and every problem found is reported.

Usage:
    bank-ledger-import CSV_PATH [OPTIONS]

Examples:
    bank-ledger-import statements/january.csv
    cat january.csv | bank-ledger-import - --db-path data/warehouse/ledger.duckdb
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from bank_ledger.ingestion.pipeline import import_csv_file, import_to_database
from bank_ledger.lib.api_error import map_exception
from bank_ledger.lib.config_loader import load_config
from bank_ledger.lib.logging_config import setup_logging

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_INVALID = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the CSV import.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Import a bank-transaction CSV file into the DuckDB ledger.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  bank-ledger-import statements/january.csv\n"
            "  cat january.csv | bank-ledger-import -\n"
            "  bank-ledger-import january.csv --config config/ledger.yaml\n"
        ),
    )
    parser.add_argument(
        "csv_path",
        type=str,
        help="CSV file to import, or '-' to read from stdin",
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
    return parser.parse_args(argv)



def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CSV import.

    Prints a JSON summary on success, or the error body on failure.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].

    Returns:
        Exit code (0 on success, 2 if the CSV was rejected, 1 otherwise).
    """
    args = parse_args(argv)
    config = load_config(args.config)
    logger = setup_logging(config["logging"]["level"])
    db_path = args.db_path or config["store"]["db_path"]

    logger.info("Starting import: source=%s, db=%s", args.csv_path, db_path)

    try:
        if args.csv_path == "-":
            result = import_to_database(sys.stdin.buffer.read(), db_path=db_path)
        else:
            result = import_csv_file(args.csv_path, db_path=db_path)
    except Exception as exc:
        error, is_client_error = map_exception(exc)
        print(error.to_json())
        return EXIT_INVALID if is_client_error else EXIT_UNEXPECTED

    logger.info("%s", result.summary(), extra={"batch_id": result.batch_id})
    print(json.dumps({
        "status": "created",
        "batch_id": result.batch_id,
        "records_loaded": result.records_loaded,
    }, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
