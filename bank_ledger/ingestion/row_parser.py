"""Field-level parsing and validation of a single CSV transaction row.

Every field is validated independently so that one row reports all of its
problems at once. A row yields either a typed candidate or its error list,
never both.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from decimal import Decimal

from bank_ledger.ingestion.models import RowParseOutcome, TransactionCandidate

# Column names in their canonical CSV order
EXPECTED_COLUMNS: tuple[str, ...] = (
    "reference",
    "timestamp",
    "amount",
    "currency",
    "description",
)

DEFAULT_COLUMN_INDEX: dict[str, int] = {
    name: position for position, name in enumerate(EXPECTED_COLUMNS)
}

MIN_COLUMNS = 4
CURRENCY_CODE_LENGTH = 3

# Digit limits of the store's DECIMAL(38, 10) amount column
MAX_INTEGER_DIGITS = 28
MAX_FRACTION_DIGITS = 10

# Plain decimal notation with an optional sign and exponent; rejects NaN,
# Infinity and digit-group underscores that Decimal() would otherwise accept.
_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

# Extended ISO-8601 calendar date and time; basic and week-date forms are rejected
_TIMESTAMP_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}")


def format_error(line_number: int, message: str) -> str:
    """Prefix an error message with its 1-based line number."""
    return f"Line {line_number}: {message}"


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 instant into an aware UTC datetime.

    The value must carry an extended calendar date, a ``T``-separated time and
    a UTC designator or offset (``2024-01-15T10:30:00Z``,
    ``2024-01-15T11:30:00+01:00``).

    Returns:
        The instant converted to UTC, or None if the text is not an instant
        or falls outside the representable date range once normalized.
    """
    if not _TIMESTAMP_SHAPE.match(value):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    try:
        return parsed.astimezone(UTC)
    except OverflowError:
        return None


def parse_amount(value: str) -> Decimal | None:
    """Parse decimal text exactly.

    Amounts the ledger cannot store without rounding are rejected: more than
    28 integer digits, or more than 10 significant fractional digits.
    Trailing fractional zeros do not count against the limit.

    Returns:
        The parsed amount, or None when the text is not a finite number or
        does not fit the ledger.
    """
    if not _DECIMAL_PATTERN.match(value):
        return None
    try:
        amount = Decimal(value)
    except ArithmeticError:
        return None
    if not amount.is_finite():
        return None

    if amount.is_zero():
        # Drop any exponent so zero never expands into a long digit string
        return Decimal(0).copy_sign(amount)

    _, digits, exponent = amount.as_tuple()
    trailing_zeros = len(digits) - len("".join(map(str, digits)).rstrip("0"))
    significant_exponent = exponent + trailing_zeros
    fraction_digits = max(0, -significant_exponent)
    integer_digits = max(0, len(digits) + exponent)
    if fraction_digits > MAX_FRACTION_DIGITS or integer_digits > MAX_INTEGER_DIGITS:
        return None
    return amount


def parse_row(
    fields: list[str],
    line_number: int,
    *,
    column_index: dict[str, int] | None = None,
) -> RowParseOutcome:
    """Parse one CSV row into a candidate transaction or a list of errors.

    Args:
        fields: The row's raw field values, in file order.
        line_number: 1-based position of the row in the payload.
        column_index: Position of each named column, as read from the header.
            Defaults to the canonical column order.

    Returns:
        A successful outcome holding the candidate, or a failed outcome
        holding every field error for the row.
    """
    if len(fields) < MIN_COLUMNS:
        return RowParseOutcome.failure([
            format_error(
                line_number,
                f"Expected at least {MIN_COLUMNS} columns but found {len(fields)}",
            ),
        ])

    index = column_index or DEFAULT_COLUMN_INDEX
    values = {name: _field_value(fields, index.get(name)) for name in EXPECTED_COLUMNS}

    errors: list[str] = []

    reference = values["reference"]
    if not reference:
        errors.append(format_error(line_number, "Missing reference"))

    timestamp: datetime | None = None
    raw_timestamp = values["timestamp"]
    if not raw_timestamp:
        errors.append(format_error(line_number, "Missing timestamp"))
    else:
        timestamp = parse_timestamp(raw_timestamp)
        if timestamp is None:
            errors.append(
                format_error(line_number, f"Invalid timestamp '{raw_timestamp}'")
            )

    amount: Decimal | None = None
    raw_amount = values["amount"]
    if not raw_amount:
        errors.append(format_error(line_number, "Missing amount"))
    else:
        amount = parse_amount(raw_amount)
        if amount is None:
            errors.append(format_error(line_number, f"Invalid amount '{raw_amount}'"))

    currency = values["currency"].upper()
    if not currency:
        errors.append(format_error(line_number, "Missing currency"))
    elif len(currency) != CURRENCY_CODE_LENGTH:
        errors.append(
            format_error(line_number, "Currency must be a 3-letter ISO code")
        )

    if errors:
        return RowParseOutcome.failure(errors)

    return RowParseOutcome.success(
        TransactionCandidate(
            reference=reference,
            timestamp=timestamp,
            amount=amount,
            currency=currency,
            description=values["description"] or None,
        )
    )


def _field_value(fields: list[str], position: int | None) -> str:
    """Return the trimmed field at ``position``, or '' when the row is too short."""
    if position is None or position >= len(fields):
        return ""
    return fields[position].strip()
