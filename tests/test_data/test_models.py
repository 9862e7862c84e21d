"""Tests for fee data models and timestamp/fee text helpers."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from stellar_fees.data.models import (
    FeeDataPoint,
    FeeSnapshot,
    format_timestamp,
    is_canonical_timestamp,
    parse_fee,
    parse_timestamp,
)
from stellar_fees.exceptions import ParseError


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_utc_datetime(self) -> None:
        assert format_timestamp(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00Z"

    def test_offset_datetime_converted_to_utc(self) -> None:
        value = datetime(2024, 1, 1, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
        assert format_timestamp(value) == "2024-01-01T00:00:00Z"

    def test_naive_datetime_taken_as_utc(self) -> None:
        assert format_timestamp(datetime(2024, 6, 1, 12, 0, 7)) == "2024-06-01T12:00:07Z"

    def test_subsecond_precision_truncated(self) -> None:
        value = datetime(2024, 1, 1, 0, 0, 0, 999999, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-01-01T00:00:00Z"

    def test_string_passes_through(self) -> None:
        assert format_timestamp("2024-01-01T00:00:00+00:00") == "2024-01-01T00:00:00+00:00"

    def test_output_sorts_chronologically(self) -> None:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        values = [base + timedelta(seconds=s) for s in (3600, 5, 86400 * 40, 59)]
        formatted = [format_timestamp(v) for v in values]
        assert sorted(formatted) == [format_timestamp(v) for v in sorted(values)]


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    @pytest.mark.parametrize(
        "text",
        [
            "2024-01-01T00:00:00Z",
            "2024-01-01T00:00:00+00:00",
            "2024-01-01T02:00:00+02:00",
            "2024-01-01 00:00:00",
        ],
    )
    def test_equivalent_forms(self, text: str) -> None:
        assert parse_timestamp(text) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_result_is_utc(self) -> None:
        assert parse_timestamp("2024-01-01T02:00:00+02:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("text", ["", "yesterday", "2024-02-30T00:00:00Z"])
    def test_invalid_raises_parse_error(self, text: str) -> None:
        with pytest.raises(ParseError):
            parse_timestamp(text)


class TestIsCanonicalTimestamp:
    """Tests for is_canonical_timestamp."""

    def test_canonical(self) -> None:
        assert is_canonical_timestamp("2024-01-01T00:00:00Z")

    @pytest.mark.parametrize(
        "text",
        [
            "2024-01-01T05:00:00+05:00",
            "2024-01-01T00:00:00+00:00",
            "20240101T000200Z",
            "2024-01-01",
            "2024-01-01 00:00:00",
            "2024-01-01T00:00:00.5Z",
            "2024-01-01T00:00:00",
            "not-a-time",
        ],
    )
    def test_non_canonical(self, text: str) -> None:
        assert not is_canonical_timestamp(text)

    def test_format_output_is_canonical(self) -> None:
        value = datetime(2024, 7, 4, 23, 59, 59, 123, tzinfo=timezone(timedelta(hours=-7)))
        assert is_canonical_timestamp(format_timestamp(value))


class TestParseFee:
    """Tests for parse_fee."""

    def test_parses_integer_and_decimal_text(self) -> None:
        assert parse_fee("100") == Decimal("100")
        assert parse_fee("213.5") == Decimal("213.5")

    @pytest.mark.parametrize("text", ["", "abc", "NaN", "-Infinity"])
    def test_invalid_raises_parse_error(self, text: str) -> None:
        with pytest.raises(ParseError):
            parse_fee(text)


class TestModels:
    """Tests for FeeDataPoint and FeeSnapshot."""

    def test_unsaved_point_has_no_store_fields(self) -> None:
        point = FeeDataPoint(
            fee_amount=100,
            timestamp="2024-01-01T00:00:00Z",
            transaction_hash="abc",
            ledger_sequence=1,
        )
        assert point.id is None
        assert point.created_at is None
        assert point.observed_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_snapshot_to_decimals(self) -> None:
        snapshot = FeeSnapshot(
            base_fee="100",
            min_fee="100",
            max_fee="5000",
            avg_fee="213.25",
            captured_at="2024-01-01T00:00:00Z",
        )
        assert snapshot.to_decimals() == {
            "base_fee": Decimal("100"),
            "min_fee": Decimal("100"),
            "max_fee": Decimal("5000"),
            "avg_fee": Decimal("213.25"),
        }
