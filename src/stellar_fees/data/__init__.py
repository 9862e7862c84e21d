"""Fee telemetry persistence layer.

Provides data models, SQLite database management with schema migrations,
and the typed append-only store for fee data points and fee snapshots.
"""

from stellar_fees.data.database import FeeDatabase, create_database
from stellar_fees.data.models import (
    FeeDataPoint,
    FeeSnapshot,
    format_timestamp,
    parse_timestamp,
)
from stellar_fees.data.store import FeeTelemetryStore

__all__ = [
    "FeeDataPoint",
    "FeeDatabase",
    "FeeSnapshot",
    "FeeTelemetryStore",
    "create_database",
    "format_timestamp",
    "parse_timestamp",
]
