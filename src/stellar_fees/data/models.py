"""Data models for Stellar fee data points and fee statistics snapshots.

Timestamps are kept as RFC 3339 / ISO 8601 TEXT exactly as stored in SQLite.
Snapshot fee figures are kept as the decimal TEXT received from Horizon so a
round trip through the store is byte-identical; use to_decimals() for arithmetic.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from stellar_fees.exceptions import ParseError

# Canonical stored form; text order equals time order
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: datetime | str) -> str:
    """Render a timestamp in the store's sortable RFC 3339 form.

    Datetimes are converted to UTC and truncated to whole seconds, e.g.
    "2024-01-01T00:00:00Z". Naive datetimes are taken as UTC.
    Strings are returned unchanged.
    """
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse RFC 3339 / ISO 8601 text into an aware UTC datetime.

    Accepts the "Z" suffix, explicit offsets, and SQLite's
    "YYYY-MM-DD HH:MM:SS" form (used by created_at). Naive values are UTC.

    Raises ParseError if the text is not a valid timestamp.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_canonical_timestamp(value: str) -> bool:
    """True if `value` is exactly "YYYY-MM-DDTHH:MM:SSZ" (UTC, whole seconds).

    Offsets, fractional seconds, date-only and basic-format values parse
    but do not sort correctly against canonical text, so they return False.
    """
    try:
        return format_timestamp(parse_timestamp(value)) == value
    except ParseError:
        return False


def parse_fee(value: str) -> Decimal:
    """Parse decimal fee text (e.g. "100" or "213.5") into a Decimal.

    Raises ParseError for text that is not a finite decimal number.
    """
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ParseError(f"invalid fee value: {value!r}") from exc
    if not amount.is_finite():
        raise ParseError(f"invalid fee value: {value!r}")
    return amount


@dataclass
class FeeDataPoint:
    """A single observed transaction fee.

    fee_amount is in stroops. id and created_at are assigned by the store
    and are None on points that have not been persisted yet.
    """

    fee_amount: int
    timestamp: str
    transaction_hash: str
    ledger_sequence: int
    id: int | None = None
    created_at: str | None = None

    @property
    def observed_at(self) -> datetime:
        """The observation time as an aware UTC datetime."""
        return parse_timestamp(self.timestamp)


@dataclass
class FeeSnapshot:
    """A point-in-time reading of Horizon fee_stats.

    Fee figures are stored as TEXT to preserve the upstream precision.
    """

    base_fee: str
    min_fee: str
    max_fee: str
    avg_fee: str
    captured_at: str
    id: int | None = None

    def to_decimals(self) -> dict[str, Decimal]:
        """Return the four fee figures as Decimals keyed by field name."""
        return {
            "base_fee": parse_fee(self.base_fee),
            "min_fee": parse_fee(self.min_fee),
            "max_fee": parse_fee(self.max_fee),
            "avg_fee": parse_fee(self.avg_fee),
        }
