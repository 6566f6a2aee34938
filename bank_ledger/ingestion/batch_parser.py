"""Whole-payload CSV parsing: header resolution, row iteration and error aggregation.

Structural problems (no payload, empty payload, missing headers) fail the batch
immediately. Field problems are collected across every row and reported
together once the whole payload has been read.
"""

from __future__ import annotations

import csv
from typing import IO

from bank_ledger.ingestion.errors import TransactionValidationError
from bank_ledger.ingestion.models import TransactionCandidate
from bank_ledger.ingestion.row_parser import EXPECTED_COLUMNS, format_error, parse_row
from bank_ledger.lib.logging_config import get_logger

logger = get_logger("ingestion.batch_parser")

CsvPayload = bytes | bytearray | str | IO[bytes] | IO[str] | None

_BOM = "\ufeff"


def read_payload(payload: CsvPayload) -> str:
    """Read a CSV payload into text.

    Args:
        payload: Raw bytes (UTF-8), text, or a readable stream of either.

    Returns:
        The payload text without a leading byte-order mark.

    Raises:
        TransactionValidationError: If the payload is missing or not UTF-8.
    """
    if payload is None:
        raise TransactionValidationError.with_message("CSV payload is required")

    if hasattr(payload, "read"):
        payload = payload.read()

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TransactionValidationError.with_message(
                f"Unable to read CSV payload: {exc}"
            ) from exc

    return payload.removeprefix(_BOM)


def split_lines(text: str) -> list[str]:
    """Split text on ``\\r\\n``, ``\\r`` or ``\\n``; a trailing terminator adds no row."""
    if not text:
        return []
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def split_fields(line: str) -> list[str]:
    """Split one CSV line into fields, honouring double-quoted values."""
    return next(csv.reader([line]), [])


def resolve_header(header_line: str) -> dict[str, int]:
    """Map each expected column name to its position in the header row.

    Header names are compared after trimming, case-insensitively.

    Raises:
        TransactionValidationError: Listing every expected column absent from
            the header.
    """
    column_index: dict[str, int] = {}
    for position, name in enumerate(split_fields(header_line)):
        column_index.setdefault(name.strip().lower(), position)

    missing = [name for name in EXPECTED_COLUMNS if name not in column_index]
    if missing:
        raise TransactionValidationError.with_message(
            f"Missing required CSV headers: {', '.join(missing)}"
        )

    return {name: column_index[name] for name in EXPECTED_COLUMNS}


def parse_batch(payload: CsvPayload) -> list[TransactionCandidate]:
    """Parse a full CSV payload into validated transaction candidates.

    Args:
        payload: The uploaded CSV, with a ``reference,timestamp,amount,
            currency,description`` header row.

    Returns:
        Candidates from every data row, in payload order.

    Raises:
        TransactionValidationError: On a structural failure, or carrying the
            errors of every invalid row when any row failed validation.
    """
    lines = split_lines(read_payload(payload))
    header_position = next(
        (position for position, line in enumerate(lines) if line.strip()),
        None,
    )
    if header_position is None:
        raise TransactionValidationError.with_message("CSV payload is empty")

    column_index = resolve_header(lines[header_position].strip())

    errors: list[str] = []
    candidates: list[TransactionCandidate] = []

    for position in range(header_position + 1, len(lines)):
        line = lines[position].strip()
        if not line:
            continue

        line_number = position + 1
        try:
            fields = split_fields(line)
        except csv.Error as exc:
            errors.append(format_error(line_number, f"Malformed CSV row: {exc}"))
            continue

        outcome = parse_row(fields, line_number, column_index=column_index)
        if outcome.is_valid:
            candidates.append(outcome.candidate)
        else:
            errors.extend(outcome.errors)

    if errors:
        logger.warning(
            "Rejected CSV payload with %d error(s) across %d line(s)",
            len(errors),
            len(lines),
        )
        raise TransactionValidationError(errors)

    if not candidates:
        raise TransactionValidationError.with_message(
            "No valid transaction rows found in CSV"
        )

    logger.info("Parsed %d transaction row(s) from CSV payload", len(candidates))
    return candidates
