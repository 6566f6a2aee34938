"""Ingestion domain models for parsed, persisted and imported transactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class TransactionCandidate:
    """A CSV row parsed into typed fields but not yet persisted.

    Attributes:
        reference: Unique business identifier of the transaction.
        timestamp: Transaction instant, normalized to UTC.
        amount: Exact decimal amount; the sign is preserved.
        currency: Three-letter currency code, upper-cased.
        description: Free text, or None when the CSV field was empty or absent.
    """

    reference: str
    timestamp: datetime
    amount: Decimal
    currency: str
    description: str | None = None


@dataclass(frozen=True)
class RowParseOutcome:
    """Result of parsing one CSV row: either a candidate or its errors.

    Attributes:
        candidate: The parsed transaction when every field was valid.
        errors: Line-prefixed error messages when any field was invalid.
    """

    candidate: TransactionCandidate | None = None
    errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if (self.candidate is None) == (not self.errors):
            msg = "RowParseOutcome must hold exactly one of a candidate or errors"
            raise ValueError(msg)

    @classmethod
    def success(cls, candidate: TransactionCandidate) -> RowParseOutcome:
        return cls(candidate=candidate)

    @classmethod
    def failure(cls, errors: list[str]) -> RowParseOutcome:
        return cls(errors=tuple(errors))

    @property
    def is_valid(self) -> bool:
        return self.candidate is not None


@dataclass(frozen=True)
class PersistedTransaction:
    """A transaction as stored in the ledger.

    Attributes:
        id: Store-assigned identity.
        reference: Unique business identifier (store-wide unique).
        timestamp: Transaction instant in UTC.
        amount: Stored decimal amount.
        currency: Three-letter currency code.
        description: Free text or None.
        batch_id: Identifier of the import that created the record.
        ingested_at: When the record was committed.
    """

    id: int
    reference: str
    timestamp: datetime
    amount: Decimal
    currency: str
    description: str | None
    batch_id: str
    ingested_at: datetime


@dataclass
class ImportResult:
    """Outcome of a successful CSV import.

    Attributes:
        batch_id: Identifier shared by every record written in this import.
        records_loaded: Number of transactions persisted.
        elapsed_seconds: Wall-clock duration of the import.
        references: References written, in payload order.
    """

    batch_id: str
    records_loaded: int = 0
    elapsed_seconds: float = 0.0
    references: list[str] = field(default_factory=list)

    def summary(self) -> str:
        """Generate a human-readable import summary.

        Returns:
            Formatted summary string.
        """
        return (
            f"Import Summary ({self.batch_id}):\n"
            f"  Records loaded: {self.records_loaded}\n"
            f"  Elapsed time:   {self.elapsed_seconds:.2f}s"
        )
