"""Duplicate reference detection for an uploaded batch.

Two passes run in order: a fail-fast scan for references repeated inside the
upload, then a single store lookup reporting every reference that already
exists in the ledger.
"""

from __future__ import annotations

import duckdb

from bank_ledger.ingestion.errors import DuplicateReferenceError
from bank_ledger.ingestion.loader import find_existing_references
from bank_ledger.ingestion.models import TransactionCandidate
from bank_ledger.lib.logging_config import get_logger

logger = get_logger("ingestion.dedup")


def check_duplicates_within_batch(candidates: list[TransactionCandidate]) -> None:
    """Fail on the first reference that appears twice in the batch.

    Args:
        candidates: Parsed candidates in payload order.

    Raises:
        DuplicateReferenceError: Naming the first repeated reference.
    """
    seen: set[str] = set()
    for candidate in candidates:
        if candidate.reference in seen:
            logger.warning("Duplicate reference %s in uploaded file", candidate.reference)
            raise DuplicateReferenceError.with_message(
                f"Duplicate reference '{candidate.reference}' in uploaded file"
            )
        seen.add(candidate.reference)


def check_duplicates_against_store(
    conn: duckdb.DuckDBPyConnection,
    candidates: list[TransactionCandidate],
) -> None:
    """Fail if any candidate reference is already stored.

    Args:
        conn: An open DuckDB connection with tables created.
        candidates: Parsed candidates, already free of in-batch duplicates.

    Raises:
        DuplicateReferenceError: Listing every reference already in the store.
    """
    existing = find_existing_references(conn, [c.reference for c in candidates])
    if existing:
        logger.warning(
            "Rejected batch: %d reference(s) already exist",
            len(existing),
        )
        raise DuplicateReferenceError.with_message(
            f"References already exist: {', '.join(existing)}"
        )

