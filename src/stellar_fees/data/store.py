"""Typed SQLite read/write abstraction for fee telemetry.

Provides FeeTelemetryStore with typed methods for inserting and querying
fee data points and fee statistics snapshots. All SQL is isolated behind
this interface.

Both tables are append-only: there are no update or delete methods.
Fee figures are stored as TEXT and returned verbatim; timestamps are
RFC 3339 TEXT, so range bounds compare lexicographically.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal

import aiosqlite

from stellar_fees.data.database import FeeDatabase
from stellar_fees.data.models import FeeDataPoint, FeeSnapshot, format_timestamp
from stellar_fees.data.validation import validate_fee_data_point, validate_fee_snapshot
from stellar_fees.exceptions import ConstraintViolationError, StorageError
from stellar_fees.logging import get_logger

logger = get_logger(__name__)

_DATA_POINT_COLUMNS = (
    "id, fee_amount, timestamp, transaction_hash, ledger_sequence, created_at"
)
_SNAPSHOT_COLUMNS = "id, base_fee, min_fee, max_fee, avg_fee, captured_at"


def _timestamp_or_none(value: datetime | str | None) -> str | None:
    if value is None:
        return None
    return format_timestamp(value)


def _fee_text(value: str | Decimal | int | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _row_to_data_point(row: tuple) -> FeeDataPoint:
    return FeeDataPoint(
        id=row[0],
        fee_amount=row[1],
        timestamp=row[2],
        transaction_hash=row[3],
        ledger_sequence=row[4],
        created_at=row[5],
    )


def _row_to_snapshot(row: tuple) -> FeeSnapshot:
    return FeeSnapshot(
        id=row[0],
        base_fee=row[1],
        min_fee=row[2],
        max_fee=row[3],
        avg_fee=row[4],
        captured_at=row[5],
    )


def _range_clause(
    column: str,
    since: datetime | str | None,
    until: datetime | str | None,
) -> tuple[str, list]:
    """Build an inclusive WHERE clause on a timestamp column."""
    conditions: list[str] = []
    params: list = []

    if since is not None:
        conditions.append(f"{column} >= ?")
        params.append(format_timestamp(since))
    if until is not None:
        conditions.append(f"{column} <= ?")
        params.append(format_timestamp(until))

    where = f"WHERE {' AND '.join(conditions)} " if conditions else ""
    return where, params


class FeeTelemetryStore:
    """Async SQLite store for fee data points and fee snapshots.

    Wraps FeeDatabase with typed read/write methods. Every write runs in
    its own transaction, so a failed insert never leaves a row behind.

    Usage:
        async with FeeDatabase("sqlite://data/stellar_fees.db") as database:
            store = FeeTelemetryStore(database)
            point_id = await store.insert_fee_data_point(
                100, "2024-01-01T00:00:00Z", "abc123", 42
            )
    """

    def __init__(self, database: FeeDatabase, validate: bool = True) -> None:
        self._database = database
        self._validate = validate

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    @asynccontextmanager
    async def _writing(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Open a write transaction, translating SQLite errors to store errors."""
        try:
            async with self._database.transaction() as connection:
                yield connection
        except aiosqlite.IntegrityError as exc:
            logger.warning("fee_store_constraint_violation", operation=operation, error=str(exc))
            raise ConstraintViolationError(f"{operation} failed: {exc}") from exc
        except aiosqlite.Error as exc:
            logger.error("fee_store_write_failed", operation=operation, error=str(exc))
            raise StorageError(f"{operation} failed: {exc}") from exc

    async def _execute_data_point_insert(
        self,
        connection: aiosqlite.Connection,
        point: FeeDataPoint,
    ) -> int:
        columns = ["fee_amount", "timestamp", "transaction_hash", "ledger_sequence"]
        params: list = [
            point.fee_amount,
            point.timestamp,
            point.transaction_hash,
            point.ledger_sequence,
        ]
        # Leave created_at out entirely so the column default applies
        if point.created_at is not None:
            columns.append("created_at")
            params.append(point.created_at)

        placeholders = ", ".join("?" for _ in columns)
        cursor = await connection.execute(
            f"INSERT INTO fee_data_points ({', '.join(columns)}) VALUES ({placeholders})",
            params,
        )
        assert cursor.lastrowid is not None
        return cursor.lastrowid

    def _prepare_data_point(self, point: FeeDataPoint) -> FeeDataPoint:
        prepared = FeeDataPoint(
            fee_amount=point.fee_amount,
            timestamp=_timestamp_or_none(point.timestamp),  # type: ignore[arg-type]
            transaction_hash=point.transaction_hash,
            ledger_sequence=point.ledger_sequence,
            created_at=_timestamp_or_none(point.created_at),
        )
        if self._validate:
            validate_fee_data_point(
                prepared.fee_amount,
                prepared.timestamp,
                prepared.transaction_hash,
                prepared.ledger_sequence,
                prepared.created_at,
            )
        return prepared

    async def insert_fee_data_point(
        self,
        fee_amount: int,
        timestamp: datetime | str,
        transaction_hash: str,
        ledger_sequence: int,
        created_at: datetime | str | None = None,
    ) -> int:
        """Insert one observed transaction fee and return its assigned id.

        fee_amount, timestamp, transaction_hash and ledger_sequence are
        mandatory; passing None for any of them raises ConstraintViolationError
        and nothing is written. created_at defaults to the database's current
        UTC time when omitted.
        """
        point = self._prepare_data_point(
            FeeDataPoint(
                fee_amount=fee_amount,
                timestamp=timestamp,  # type: ignore[arg-type]
                transaction_hash=transaction_hash,
                ledger_sequence=ledger_sequence,
                created_at=created_at,  # type: ignore[arg-type]
            )
        )

        async with self._writing("insert_fee_data_point") as connection:
            point_id = await self._execute_data_point_insert(connection, point)

        logger.debug(
            "fee_data_point_inserted",
            id=point_id,
            fee_amount=point.fee_amount,
            ledger_sequence=point.ledger_sequence,
        )
        return point_id

    async def insert_fee_data_points(self, points: list[FeeDataPoint]) -> int:
        """Insert a batch of fee data points in a single transaction.

        Any id already set on an input point is ignored; a set created_at
        is kept. If one point fails, none are written.
        Returns the number of inserted rows.
        """
        if not points:
            return 0

        prepared = [self._prepare_data_point(point) for point in points]

        async with self._writing("insert_fee_data_points") as connection:
            for point in prepared:
                await self._execute_data_point_insert(connection, point)

        logger.debug("fee_data_points_inserted", inserted=len(prepared))
        return len(prepared)

    async def insert_fee_snapshot(
        self,
        base_fee: str | Decimal | int,
        min_fee: str | Decimal | int,
        max_fee: str | Decimal | int,
        avg_fee: str | Decimal | int,
        captured_at: datetime | str,
    ) -> int:
        """Insert one fee_stats snapshot and return its assigned id.

        Fee figures are stored as TEXT; strings are kept verbatim, Decimals
        and ints are converted with str(). All fields are mandatory.
        """
        values = (
            _fee_text(base_fee),
            _fee_text(min_fee),
            _fee_text(max_fee),
            _fee_text(avg_fee),
            _timestamp_or_none(captured_at),
        )
        if self._validate:
            validate_fee_snapshot(*values)

        async with self._writing("insert_fee_snapshot") as connection:
            cursor = await connection.execute(
                "INSERT INTO fee_snapshots "
                "(base_fee, min_fee, max_fee, avg_fee, captured_at) "
                "VALUES (?, ?, ?, ?, ?)",
                values,
            )
            assert cursor.lastrowid is not None
            snapshot_id = cursor.lastrowid

        logger.debug("fee_snapshot_inserted", id=snapshot_id, captured_at=values[4])
        return snapshot_id

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def _fetchall(self, sql: str, params: list | tuple = ()) -> list:
        try:
            async with self._database.read() as connection:
                cursor = await connection.execute(sql, params)
                return list(await cursor.fetchall())
        except aiosqlite.Error as exc:
            logger.error("fee_store_read_failed", error=str(exc))
            raise StorageError(f"query failed: {exc}") from exc

    async def get_fee_data_point(self, point_id: int) -> FeeDataPoint | None:
        """Return the data point with the given id, or None."""
        rows = await self._fetchall(
            f"SELECT {_DATA_POINT_COLUMNS} FROM fee_data_points WHERE id = ?",
            (point_id,),
        )
        return _row_to_data_point(rows[0]) if rows else None

    async def get_fee_snapshot(self, snapshot_id: int) -> FeeSnapshot | None:
        """Return the snapshot with the given id, or None."""
        rows = await self._fetchall(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM fee_snapshots WHERE id = ?",
            (snapshot_id,),
        )
        return _row_to_snapshot(rows[0]) if rows else None

    async def get_fee_data_points(
        self,
        since: datetime | str | None = None,
        until: datetime | str | None = None,
        limit: int | None = None,
    ) -> list[FeeDataPoint]:
        """Query data points whose timestamp lies within an optional inclusive range.

        Returns list of FeeDataPoint ordered by timestamp ASC (id breaks ties).
        """
        where, params = _range_clause("timestamp", since, until)
        sql = (
            f"SELECT {_DATA_POINT_COLUMNS} FROM fee_data_points {where}"
            "ORDER BY timestamp ASC, id ASC"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = await self._fetchall(sql, params)
        return [_row_to_data_point(row) for row in rows]

    async def get_fee_snapshots(
        self,
        since: datetime | str | None = None,
        until: datetime | str | None = None,
        limit: int | None = None,
    ) -> list[FeeSnapshot]:
        """Query snapshots whose captured_at lies within an optional inclusive range.

        Returns list of FeeSnapshot ordered by captured_at ASC (id breaks ties).
        """
        where, params = _range_clause("captured_at", since, until)
        sql = (
            f"SELECT {_SNAPSHOT_COLUMNS} FROM fee_snapshots {where}"
            "ORDER BY captured_at ASC, id ASC"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = await self._fetchall(sql, params)
        return [_row_to_snapshot(row) for row in rows]

    async def get_latest_fee_snapshot(self) -> FeeSnapshot | None:
        """Return the most recently captured snapshot, or None if there are none."""
        rows = await self._fetchall(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM fee_snapshots "
            "ORDER BY captured_at DESC, id DESC LIMIT 1"
        )
        return _row_to_snapshot(rows[0]) if rows else None

    async def count_fee_data_points(self) -> int:
        rows = await self._fetchall("SELECT COUNT(*) FROM fee_data_points")
        return rows[0][0]

    async def count_fee_snapshots(self) -> int:
        rows = await self._fetchall("SELECT COUNT(*) FROM fee_snapshots")
        return rows[0][0]
