"""Application-level checks applied before a record is written.

The schema only enforces NOT NULL. These checks reject values that would
store but are meaningless: negative stroop amounts, fee text that is not a
number, and timestamps outside the canonical "YYYY-MM-DDTHH:MM:SSZ" form,
which would sort out of time order in range queries.

None values are deliberately skipped so the schema's NOT NULL constraints
report them as ConstraintViolationError.
"""

from typing import Any

from stellar_fees.data.models import is_canonical_timestamp, parse_fee, parse_timestamp
from stellar_fees.exceptions import InvalidRecordError, ParseError


def _check_non_negative_int(field: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRecordError(f"{field} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidRecordError(f"{field} must be non-negative, got {value}")


def _check_timestamp(field: str, value: Any) -> None:
    if value is None:
        return
    try:
        parse_timestamp(value)
    except ParseError as exc:
        raise InvalidRecordError(f"{field}: {exc}") from exc
    if not is_canonical_timestamp(value):
        raise InvalidRecordError(
            f"{field} must be UTC \"YYYY-MM-DDTHH:MM:SSZ\", got {value!r}"
        )


def _check_fee_text(field: str, value: Any) -> None:
    if value is None:
        return
    try:
        amount = parse_fee(value)
    except ParseError as exc:
        raise InvalidRecordError(f"{field}: {exc}") from exc
    if amount < 0:
        raise InvalidRecordError(f"{field} must be non-negative, got {value!r}")


def validate_fee_data_point(
    fee_amount: Any,
    timestamp: Any,
    transaction_hash: Any,
    ledger_sequence: Any,
    created_at: Any = None,
) -> None:
    """Raise InvalidRecordError if any non-None field of a data point is invalid."""
    _check_non_negative_int("fee_amount", fee_amount)
    _check_timestamp("timestamp", timestamp)
    if transaction_hash is not None and (
        not isinstance(transaction_hash, str) or not transaction_hash
    ):
        raise InvalidRecordError(
            f"transaction_hash must be a non-empty string, got {transaction_hash!r}"
        )
    _check_non_negative_int("ledger_sequence", ledger_sequence)
    _check_timestamp("created_at", created_at)


def validate_fee_snapshot(
    base_fee: Any,
    min_fee: Any,
    max_fee: Any,
    avg_fee: Any,
    captured_at: Any,
) -> None:
    """Raise InvalidRecordError if any non-None field of a snapshot is invalid."""
    _check_fee_text("base_fee", base_fee)
    _check_fee_text("min_fee", min_fee)
    _check_fee_text("max_fee", max_fee)
    _check_fee_text("avg_fee", avg_fee)
    _check_timestamp("captured_at", captured_at)
