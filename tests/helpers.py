"""Payload and record builders shared across test modules."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from bank_ledger.ingestion.models import PersistedTransaction

HEADER = "reference,timestamp,amount,currency,description"


def make_csv(*rows: str, header: str = HEADER) -> str:
    """Join a header and data rows into a newline-terminated CSV payload."""
    return "\n".join([header, *rows]) + "\n"


def make_persisted(
    reference: str,
    amount: str,
    *,
    timestamp: datetime | None = None,
    currency: str = "EUR",
    description: str | None = None,
    id: int = 1,
) -> PersistedTransaction:
    """Build a PersistedTransaction for formatter tests."""
    return PersistedTransaction(
        id=id,
        reference=reference,
        timestamp=timestamp or datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC),
        amount=Decimal(amount),
        currency=currency,
        description=description,
        batch_id="batch-test",
        ingested_at=datetime(2024, 2, 1, 0, 0, 0, tzinfo=UTC),
    )
