"""Display formatting for the transaction listing.

Turns persisted transactions into display-ready rows: localized timestamps and
amounts, and a highlight on the largest incoming (positive) transaction.
Formatting settings are built once from configuration and passed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import ROUND_HALF_EVEN, Context, Decimal
from typing import Any
from zoneinfo import ZoneInfo

from bank_ledger.ingestion.models import PersistedTransaction
from bank_ledger.lib.logging_config import get_logger

logger = get_logger("view.formatter")

# Wide enough to quantize any DECIMAL(38, 10) value without signalling
_QUANTIZE_CONTEXT = Context(prec=60)


@dataclass(frozen=True)
class DisplayFormat:
    """Number and date formatting settings for the listing.

    Attributes:
        timezone: Zone in which timestamps are displayed.
        timestamp_format: ``strftime`` pattern for timestamps.
        grouping_separator: Separator placed between thousands groups.
        decimal_separator: Separator placed before the fractional digits.
        max_fraction_digits: Fractional digits kept after half-even rounding.
    """

    timezone: tzinfo = ZoneInfo("UTC")
    timestamp_format: str = "%Y-%m-%d %H:%M:%S %Z"
    grouping_separator: str = " "
    decimal_separator: str = "."
    max_fraction_digits: int = 2

    @classmethod
    def from_config(cls, display: dict[str, Any]) -> DisplayFormat:
        """Build the display settings from the ``display`` config section."""
        return cls(
            timezone=ZoneInfo(display["timezone"]),
            timestamp_format=display["timestamp_format"],
            grouping_separator=display["grouping_separator"],
            decimal_separator=display["decimal_separator"],
            max_fraction_digits=int(display["max_fraction_digits"]),
        )


@dataclass(frozen=True)
class TransactionRow:
    """One display-ready line of the transaction listing."""

    reference: str
    formatted_timestamp: str
    formatted_amount: str
    description: str
    highlight: bool


def find_highlight_reference(transactions: list[PersistedTransaction]) -> str | None:
    """Return the reference of the largest positive amount.

    When several transactions share the maximum, the first one in the given
    order wins. Returns None if no amount is above zero.
    """
    best: PersistedTransaction | None = None
    for tx in transactions:
        if tx.amount > 0 and (best is None or tx.amount > best.amount):
            best = tx
    return best.reference if best is not None else None


def format_amount(amount: Decimal, currency: str, display: DisplayFormat) -> str:
    """Format an amount with grouped thousands, followed by its currency.

    Rounds half-even to the configured fractional digits and drops trailing
    fractional zeros, e.g. ``1234567.891`` becomes ``1 234 567.89 EUR``.
    """
    exponent = Decimal(1).scaleb(-display.max_fraction_digits)
    rounded = amount.quantize(
        exponent, rounding=ROUND_HALF_EVEN, context=_QUANTIZE_CONTEXT
    )
    if rounded.is_zero():
        rounded = abs(rounded)

    integer_part, _, fraction_part = f"{rounded:,f}".partition(".")
    fraction_part = fraction_part.rstrip("0")

    text = integer_part.replace(",", display.grouping_separator)
    if fraction_part:
        text = f"{text}{display.decimal_separator}{fraction_part}"
    return f"{text} {currency}"


def format_timestamp(value: datetime, display: DisplayFormat) -> str:
    """Render an aware timestamp in the display zone."""
    return value.astimezone(display.timezone).strftime(display.timestamp_format)


def build_transaction_rows(
    transactions: list[PersistedTransaction],
    *,
    display: DisplayFormat,
) -> list[TransactionRow]:
    """Convert persisted transactions into display rows, preserving order.

    Args:
        transactions: Stored transactions, already sorted for display.
        display: Formatting settings.

    Returns:
        One TransactionRow per transaction; at most one is highlighted.
    """
    highlight_reference = find_highlight_reference(transactions)
    rows = [
        TransactionRow(
            reference=tx.reference,
            formatted_timestamp=format_timestamp(tx.timestamp, display),
            formatted_amount=format_amount(tx.amount, tx.currency, display),
            description=tx.description or "",
            highlight=tx.reference == highlight_reference,
        )
        for tx in transactions
    ]
    logger.info("Formatted %d transaction row(s)", len(rows))
    return rows


def render_table(rows: list[TransactionRow]) -> str:
    """Render rows as an aligned plain-text table; ``*`` marks the highlight."""
    headers = ("", "Reference", "Timestamp", "Amount", "Description")
    body = [
        (
            "*" if row.highlight else "",
            row.reference,
            row.formatted_timestamp,
            row.formatted_amount,
            row.description,
        )
        for row in rows
    ]
    widths = [
        max(len(line[i]) for line in [headers, *body]) for i in range(len(headers))
    ]

    def _line(cells: tuple[str, ...]) -> str:
        # Amounts are right-aligned, everything else left-aligned
        parts = [
            cell.rjust(width) if i == 3 else cell.ljust(width)
            for i, (cell, width) in enumerate(zip(cells, widths, strict=True))
        ]
        return "  ".join(parts).rstrip()

    return "\n".join(_line(cells) for cells in [headers, *body])
