"""DuckDB connection management and transaction record storage."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import duckdb
import polars as pl

from bank_ledger.ingestion.models import PersistedTransaction, TransactionCandidate
from bank_ledger.lib.logging_config import get_logger

DEFAULT_DB_PATH: str = "data/warehouse/ledger.duckdb"

_TRANSACTION_SEQ_DDL: str = """
CREATE SEQUENCE IF NOT EXISTS bank_transaction_id_seq START 1;
"""

_TRANSACTIONS_DDL: str = """
CREATE TABLE IF NOT EXISTS bank_transactions (
    id           BIGINT PRIMARY KEY DEFAULT nextval('bank_transaction_id_seq'),
    reference    VARCHAR NOT NULL UNIQUE,
    timestamp    TIMESTAMPTZ NOT NULL,
    amount       DECIMAL(38, 10) NOT NULL,
    currency     VARCHAR(3) NOT NULL,
    description  VARCHAR,
    batch_id     VARCHAR NOT NULL,
    ingested_at  TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

# Staging frame schema; amount travels as exact decimal text and is cast on insert
_STAGING_SCHEMA: dict[str, pl.DataType] = {
    "reference": pl.Utf8,
    "timestamp": pl.Datetime("us", time_zone="UTC"),
    "amount": pl.Utf8,
    "currency": pl.Utf8,
    "description": pl.Utf8,
    "batch_id": pl.Utf8,
    "ingested_at": pl.Datetime("us", time_zone="UTC"),
}

logger = get_logger("ingestion.loader")


def connect(db_path: str | Path = DEFAULT_DB_PATH) -> duckdb.DuckDBPyConnection:
    """Create a DuckDB connection, ensuring the parent directory exists.

    The session time zone is pinned to UTC so TIMESTAMPTZ values read back
    as UTC instants.

    Args:
        db_path: Path to the DuckDB database file.

    Returns:
        An open DuckDB connection.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Connecting to DuckDB at %s", db_path)
    conn = duckdb.connect(str(db_path))
    conn.execute("SET TimeZone = 'UTC'")
    return conn


def create_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Create the ledger tables if they do not exist.

    Safe to call multiple times (idempotent).

    Args:
        conn: An open DuckDB connection.
    """
    conn.execute(_TRANSACTION_SEQ_DDL)
    conn.execute(_TRANSACTIONS_DDL)
    logger.info("Ledger tables ready")


def find_existing_references(
    conn: duckdb.DuckDBPyConnection,
    references: list[str],
) -> list[str]:
    """Return the subset of ``references`` already stored, in insertion order.

    Args:
        conn: An open DuckDB connection with tables created.
        references: Candidate references to look up.

    Returns:
        Stored references that match, oldest first.
    """
    if not references:
        return []

    rows = conn.execute(
        """
        SELECT reference
        FROM bank_transactions
        WHERE list_contains(?::VARCHAR[], reference)
        ORDER BY id
        """,
        [list(references)],
    ).fetchall()
    return [row[0] for row in rows]


def build_staging_frame(
    candidates: list[TransactionCandidate],
    *,
    batch_id: str,
    ingested_at: datetime | None = None,
) -> pl.DataFrame:
    """Convert candidates into a Polars DataFrame ready for bulk insert.

    Args:
        candidates: Validated, duplicate-free candidates.
        batch_id: Import identifier recorded on every row.
        ingested_at: Commit time recorded on every row. Defaults to now.

    Returns:
        DataFrame with one row per candidate, in candidate order.
    """
    ingested_at = ingested_at or datetime.now(UTC)
    return pl.DataFrame(
        {
            "reference": [c.reference for c in candidates],
            "timestamp": [c.timestamp for c in candidates],
            "amount": [format(c.amount, "f") for c in candidates],
            "currency": [c.currency for c in candidates],
            "description": [c.description for c in candidates],
            "batch_id": [batch_id] * len(candidates),
            "ingested_at": [ingested_at] * len(candidates),
        },
        schema=_STAGING_SCHEMA,
    )


def insert_transactions(
    conn: duckdb.DuckDBPyConnection,
    candidates: list[TransactionCandidate],
    *,
    batch_id: str,
) -> int:
    """Insert validated candidates into the bank_transactions table.

    Uses DuckDB's Arrow interchange with Polars for a single bulk insert.
    The caller owns the surrounding database transaction.

    Args:
        conn: An open DuckDB connection with tables created.
        candidates: Validated, duplicate-free candidates.
        batch_id: Import identifier recorded on every row.

    Returns:
        Number of records inserted.

    Raises:
        duckdb.ConstraintException: If a reference already exists.
    """
    if not candidates:
        return 0

    df = build_staging_frame(candidates, batch_id=batch_id)

    conn.register("_staged_transactions", df.to_arrow())
    try:
        conn.execute("""
            INSERT INTO bank_transactions (
                reference, timestamp, amount, currency,
                description, batch_id, ingested_at
            )
            SELECT
                reference, timestamp, CAST(amount AS DECIMAL(38, 10)), currency,
                description, batch_id, ingested_at
            FROM _staged_transactions
        """)
    finally:
        conn.unregister("_staged_transactions")

    row_count = len(df)
    logger.info("Inserted %d records into bank_transactions", row_count)
    return row_count


def list_transactions(conn: duckdb.DuckDBPyConnection) -> list[PersistedTransaction]:
    """Return every stored transaction, newest timestamp first.

    Records sharing a timestamp keep insertion order.

    Args:
        conn: An open DuckDB connection with tables created.

    Returns:
        All persisted transactions.
    """
    df = conn.execute("""
        SELECT id, reference, timestamp, CAST(amount AS VARCHAR) AS amount,
               currency, description, batch_id, ingested_at
        FROM bank_transactions
        ORDER BY timestamp DESC, id ASC
    """).pl()

    return [
        PersistedTransaction(**{**row, "amount": Decimal(row["amount"])})
        for row in df.iter_rows(named=True)
    ]


def count_transactions(conn: duckdb.DuckDBPyConnection) -> int:
    """Return the number of stored transactions."""
    result = conn.execute("SELECT COUNT(*) FROM bank_transactions").fetchone()
    return int(result[0]) if result else 0

