"""CSV import orchestrator.

Coordinates the end-to-end flow for one uploaded payload: parse every row,
reject duplicates, and persist the whole batch in a single database
transaction. A batch is all-or-nothing; any failure leaves the ledger
unchanged.
"""

from __future__ import annotations

import time
import uuid
from pathlib import Path

import duckdb

from bank_ledger.ingestion.batch_parser import CsvPayload, parse_batch
from bank_ledger.ingestion.dedup import (
    check_duplicates_against_store,
    check_duplicates_within_batch,
)
from bank_ledger.ingestion.errors import DuplicateReferenceError
from bank_ledger.ingestion.loader import (
    DEFAULT_DB_PATH,
    connect,
    count_transactions,
    create_tables,
    find_existing_references,
    insert_transactions,
)
from bank_ledger.ingestion.models import ImportResult, TransactionCandidate
from bank_ledger.lib.logging_config import get_logger

logger = get_logger("ingestion.pipeline")


def import_csv(payload: CsvPayload, *, conn: duckdb.DuckDBPyConnection) -> ImportResult:
    """Validate a CSV payload and persist all of its transactions atomically.

    Flow: parse → in-batch duplicate check → (transaction: store duplicate
    check → insert) → commit.

    Args:
        payload: The uploaded CSV as bytes, text or a readable stream.
        conn: An open DuckDB connection with tables created.

    Returns:
        ImportResult describing the committed batch.

    Raises:
        TransactionValidationError: If the payload is rejected. Nothing is
            written.
        duckdb.Error: On any unexpected storage failure. Nothing is written.
    """
    start_time = time.monotonic()
    batch_id = uuid.uuid4().hex

    candidates = parse_batch(payload)
    check_duplicates_within_batch(candidates)

    loaded = _persist_batch(conn, candidates, batch_id=batch_id)

    result = ImportResult(
        batch_id=batch_id,
        records_loaded=loaded,
        elapsed_seconds=time.monotonic() - start_time,
        references=[c.reference for c in candidates],
    )
    logger.info(
        "Imported %d transaction(s)",
        result.records_loaded,
        extra={"batch_id": batch_id},
    )
    return result


def _persist_batch(
    conn: duckdb.DuckDBPyConnection,
    candidates: list[TransactionCandidate],
    *,
    batch_id: str,
) -> int:
    """Run the store duplicate check and the insert as one unit of work.

    A uniqueness violation at insert time (a concurrent upload won the race)
    is reported the same way as a duplicate found by the store check.
    """
    conn.begin()
    try:
        check_duplicates_against_store(conn, candidates)
        loaded = insert_transactions(conn, candidates, batch_id=batch_id)
        conn.commit()
    except duckdb.ConstraintException as exc:
        conn.rollback()
        logger.warning(
            "Uniqueness conflict while saving batch: %s",
            exc,
            extra={"batch_id": batch_id},
        )
        raise _conflict_error(conn, candidates) from exc
    except Exception:
        conn.rollback()
        raise
    return loaded


def _conflict_error(
    conn: duckdb.DuckDBPyConnection,
    candidates: list[TransactionCandidate],
) -> DuplicateReferenceError:
    """Describe a uniqueness conflict by re-reading the colliding references."""
    existing = find_existing_references(conn, [c.reference for c in candidates])
    if existing:
        return DuplicateReferenceError.with_message(
            f"References already exist: {', '.join(existing)}"
        )
    return DuplicateReferenceError.with_message(
        "Duplicate reference detected while saving transactions"
    )


def import_to_database(
    payload: CsvPayload,
    *,
    db_path: str | Path = DEFAULT_DB_PATH,
) -> ImportResult:
    """Import a CSV payload into the ledger database at ``db_path``.

    Opens its own connection, creating the ledger tables on first use.

    Args:
        payload: The uploaded CSV as bytes, text or a readable stream.
        db_path: Path to the DuckDB database file.

    Returns:
        ImportResult describing the committed batch.
    """
    conn = connect(db_path)
    try:
        create_tables(conn)
        result = import_csv(payload, conn=conn)
        logger.info(
            "Ledger now holds %d transaction(s)",
            count_transactions(conn),
            extra={"batch_id": result.batch_id},
        )
        return result
    finally:
        conn.close()


def import_csv_file(
    csv_path: str | Path,
    *,
    db_path: str | Path = DEFAULT_DB_PATH,
) -> ImportResult:
    """Import one CSV file into the ledger database at ``db_path``.

    Args:
        csv_path: Path to the CSV file to import.
        db_path: Path to the DuckDB database file.

    Returns:
        ImportResult describing the committed batch.

    Raises:
        FileNotFoundError: If ``csv_path`` does not exist.
    """
    csv_path = Path(csv_path)
    logger.info("Reading %s", csv_path.name)
    return import_to_database(csv_path.read_bytes(), db_path=db_path)
