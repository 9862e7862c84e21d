"""Versioned schema migrations for the fee telemetry database.

Migrations are applied in version order and recorded in schema_migrations.
Every statement uses IF NOT EXISTS, so re-running a migration against an
existing schema is harmless.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Migration:
    """A single schema migration."""

    version: int
    description: str
    sql: str


CREATE_MIGRATIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version     INTEGER PRIMARY KEY,
    description TEXT    NOT NULL,
    applied_at  TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""

_INITIAL_SCHEMA_SQL = """
-- Individual fee data points collected from Horizon.
-- Timestamps are ISO 8601 / RFC 3339 strings.

CREATE TABLE IF NOT EXISTS fee_data_points (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    fee_amount       INTEGER NOT NULL,
    timestamp        TEXT    NOT NULL,
    transaction_hash TEXT    NOT NULL,
    ledger_sequence  INTEGER NOT NULL,
    created_at       TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_fee_data_points_timestamp
    ON fee_data_points (timestamp);

-- Periodic snapshots of Horizon fee_stats (base, min, max, avg).
-- Read by historical time-range queries.

CREATE TABLE IF NOT EXISTS fee_snapshots (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    base_fee    TEXT NOT NULL,
    min_fee     TEXT NOT NULL,
    max_fee     TEXT NOT NULL,
    avg_fee     TEXT NOT NULL,
    captured_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_fee_snapshots_captured_at
    ON fee_snapshots (captured_at);
"""

MIGRATIONS: tuple[Migration, ...] = (
    Migration(version=1, description="initial_schema", sql=_INITIAL_SCHEMA_SQL),
)


def pending_migrations(applied: set[int]) -> list[Migration]:
    """Return migrations not yet in `applied`, ordered by version."""
    return sorted(
        (m for m in MIGRATIONS if m.version not in applied),
        key=lambda m: m.version,
    )
