"""Unit tests for duplicate reference detection."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import duckdb
import pytest

from bank_ledger.ingestion.dedup import (
    check_duplicates_against_store,
    check_duplicates_within_batch,
)
from bank_ledger.ingestion.errors import DuplicateReferenceError, TransactionValidationError
from bank_ledger.ingestion.loader import insert_transactions
from bank_ledger.ingestion.models import TransactionCandidate


def _candidate(reference: str, amount: str = "10.00") -> TransactionCandidate:
    return TransactionCandidate(
        reference=reference,
        timestamp=datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC),
        amount=Decimal(amount),
        currency="EUR",
    )


class TestCheckDuplicatesWithinBatch:
    """Tests for the fail-fast in-batch pass."""

    def test_unique_references_pass(self) -> None:
        """Given unique references, When checked, Then no error."""
        check_duplicates_within_batch([_candidate("A"), _candidate("B"), _candidate("C")])

    def test_empty_batch_passes(self) -> None:
        """Given an empty batch, When checked, Then no error."""
        check_duplicates_within_batch([])

    def test_duplicate_names_reference(self) -> None:
        """Given a repeated reference, When checked, Then the error names it."""
        with pytest.raises(DuplicateReferenceError) as exc_info:
            check_duplicates_within_batch([_candidate("A"), _candidate("B"), _candidate("A")])

        assert exc_info.value.errors == ["Duplicate reference 'A' in uploaded file"]

    def test_reports_only_first_duplicate(self) -> None:
        """Given two repeated references, When checked, Then only the first is named."""
        batch = [_candidate("A"), _candidate("B"), _candidate("B"), _candidate("A")]

        with pytest.raises(DuplicateReferenceError) as exc_info:
            check_duplicates_within_batch(batch)

        assert exc_info.value.errors == ["Duplicate reference 'B' in uploaded file"]

    def test_is_validation_error(self) -> None:
        """Given a duplicate, When checked, Then the error is validation-class."""
        with pytest.raises(TransactionValidationError):
            check_duplicates_within_batch([_candidate("A"), _candidate("A")])

    def test_references_are_case_sensitive(self) -> None:
        """Given references differing only in case, When checked, Then no error."""
        check_duplicates_within_batch([_candidate("tx1"), _candidate("TX1")])


class TestCheckDuplicatesAgainstStore:
    """Tests for the store-backed pass."""

    def test_empty_store_passes(self, ledger_conn: duckdb.DuckDBPyConnection) -> None:
        """Given an empty ledger, When checked, Then no error."""
        check_duplicates_against_store(ledger_conn, [_candidate("A")])

    def test_existing_reference_rejected(
        self,
        ledger_conn: duckdb.DuckDBPyConnection,
    ) -> None:
        """Given TX123 stored, When a batch containing it is checked, Then it is named."""
        insert_transactions(ledger_conn, [_candidate("TX123")], batch_id="b1")

        with pytest.raises(DuplicateReferenceError) as exc_info:
            check_duplicates_against_store(
                ledger_conn, [_candidate("NEW1"), _candidate("TX123")]
            )

        assert exc_info.value.errors == ["References already exist: TX123"]

    def test_lists_every_existing_reference(
        self,
        ledger_conn: duckdb.DuckDBPyConnection,
    ) -> None:
        """Given several stored references, When checked, Then all collisions are listed."""
        insert_transactions(
            ledger_conn,
            [_candidate("A"), _candidate("B"), _candidate("C")],
            batch_id="b1",
        )

        with pytest.raises(DuplicateReferenceError) as exc_info:
            check_duplicates_against_store(
                ledger_conn, [_candidate("C"), _candidate("X"), _candidate("A")]
            )

        assert exc_info.value.errors == ["References already exist: A, C"]
