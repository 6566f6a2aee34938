"""Validation error types raised by the ingestion pipeline."""

from __future__ import annotations


class TransactionValidationError(Exception):
    """A CSV payload was rejected; carries every message explaining why.

    Attributes:
        errors: Human-readable error messages, in the order they were found.
    """

    def __init__(self, errors: list[str] | None = None) -> None:
        self.errors: list[str] = list(errors or [])
        super().__init__("; ".join(self.errors) if self.errors else "Validation failed")

    @classmethod
    def with_message(cls, message: str) -> TransactionValidationError:
        """Build an error carrying a single message."""
        return cls([message])


class DuplicateReferenceError(TransactionValidationError):
    """A reference occurs twice in one upload or already exists in the store."""
