"""Async SQLite database manager for fee telemetry persistence.

Uses aiosqlite for non-blocking database operations with WAL mode
for concurrent read/write performance, and applies versioned schema
migrations on connect.
"""

import asyncio
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Self

import aiosqlite

from stellar_fees.data.migrations import (
    CREATE_MIGRATIONS_TABLE_SQL,
    Migration,
    pending_migrations,
)
from stellar_fees.exceptions import ConfigError, DatabaseNotConnectedError, StorageError
from stellar_fees.logging import get_logger

logger = get_logger(__name__)

MEMORY_DATABASE = ":memory:"


def resolve_database_path(database_url: str) -> str:
    """Translate a SQLite connection string into a path aiosqlite accepts.

    Supported forms:
    - "sqlite://stellar_fees.db" (relative file)
    - "sqlite:///var/lib/fees.db" (absolute file)
    - "sqlite::memory:" or ":memory:" (in-memory, useful for tests)
    - a bare filesystem path

    Query parameters (e.g. "?mode=rwc") are ignored.
    Raises ConfigError for empty or non-SQLite URLs.
    """
    url = database_url.strip()
    if url in ("sqlite::memory:", MEMORY_DATABASE):
        return MEMORY_DATABASE

    if url.startswith("sqlite://"):
        path = url[len("sqlite://"):]
    elif url.startswith("sqlite:"):
        path = url[len("sqlite:"):]
    elif "://" in url:
        raise ConfigError(f"unsupported database URL: {database_url!r}")
    else:
        path = url

    path = path.split("?", 1)[0]
    if path == MEMORY_DATABASE:
        return MEMORY_DATABASE
    if not path:
        raise ConfigError(f"database URL has no path: {database_url!r}")
    return path


class FeeDatabase:
    """Async SQLite connection manager for fee telemetry.

    Manages database lifecycle including migrations, WAL mode
    configuration, write serialization, and clean resource cleanup.

    Usage:
        # Context manager (recommended)
        async with FeeDatabase("sqlite://data/stellar_fees.db") as database:
            store = FeeTelemetryStore(database)

        # Manual lifecycle
        database = FeeDatabase("sqlite::memory:")
        await database.connect()
        try:
            ...
        finally:
            await database.close()
    """

    def __init__(
        self,
        database_url: str = "sqlite://data/stellar_fees.db",
        busy_timeout_ms: int = 5000,
    ) -> None:
        self._database_url = database_url
        self._db_path = resolve_database_path(database_url)
        self._busy_timeout_ms = busy_timeout_ms
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises DatabaseNotConnectedError if not connected.
        """
        if self._connection is None:
            raise DatabaseNotConnectedError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_memory(self) -> bool:
        return self._db_path == MEMORY_DATABASE

    async def connect(self) -> None:
        """Open database connection, configure pragmas, and apply migrations.

        Creates the parent directory of a file database if it does not exist.
        Sets WAL journal mode and NORMAL synchronous for file databases.

        Raises StorageError if the connection or any migration fails.
        """
        try:
            if not self.is_memory:
                db_dir = os.path.dirname(self._db_path)
                if db_dir:
                    os.makedirs(db_dir, exist_ok=True)

            self._connection = await aiosqlite.connect(self._db_path)

            if not self.is_memory:
                await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA synchronous=NORMAL")
            await self._connection.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")

            await self._apply_migrations()
        except (aiosqlite.Error, OSError) as exc:
            logger.error("fee_db_connect_failed", db_path=self._db_path, error=str(exc))
            await self.close()
            raise StorageError(f"failed to open database {self._db_path!r}: {exc}") from exc

        logger.info("fee_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("fee_db_closed", db_path=self._db_path)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run a block of writes as one transaction.

        Holds the connection lock, so concurrent tasks never interleave
        writes and readers never see uncommitted rows. Commits when the
        block exits normally and rolls back on any exception, including
        a failed commit, which is re-raised.

        Usage:
            async with database.transaction() as conn:
                await conn.execute("INSERT ...")
        """
        connection = self.db
        async with self._lock:
            try:
                yield connection
                await connection.commit()
            except BaseException:
                await connection.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Hold the connection lock for a block of reads.

        The connection is shared with writers; reads wait for any open
        transaction() to commit or roll back first.
        """
        connection = self.db
        async with self._lock:
            yield connection

    async def applied_migrations(self) -> list[int]:
        """Return the versions recorded in schema_migrations, ascending."""
        async with self.read() as connection:
            cursor = await connection.execute(
                "SELECT version FROM schema_migrations ORDER BY version ASC"
            )
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def _apply_migrations(self) -> None:
        """Create the migrations table and apply pending migrations in order."""
        assert self._connection is not None
        await self._connection.executescript(CREATE_MIGRATIONS_TABLE_SQL)

        applied = set(await self.applied_migrations())
        for migration in pending_migrations(applied):
            await self._apply_migration(migration)

    async def _apply_migration(self, migration: Migration) -> None:
        """Apply one migration and record it, atomically."""
        assert self._connection is not None
        try:
            # The script leaves the transaction open so the version row commits with it
            await self._connection.executescript(f"BEGIN;\n{migration.sql}")
            await self._connection.execute(
                "INSERT INTO schema_migrations (version, description) VALUES (?, ?)",
                (migration.version, migration.description),
            )
            await self._connection.commit()
        except aiosqlite.Error:
            if self._connection.in_transaction:
                await self._connection.rollback()
            raise
        logger.info(
            "migration_applied",
            version=migration.version,
            description=migration.description,
        )

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        """Async context manager exit."""
        await self.close()


async def create_database(
    database_url: str,
    busy_timeout_ms: int = 5000,
) -> FeeDatabase:
    """Connect to the database at `database_url` and apply pending migrations.

    Call at startup. The caller owns the returned database and must close() it.
    """
    database = FeeDatabase(database_url, busy_timeout_ms=busy_timeout_ms)
    await database.connect()
    return database
