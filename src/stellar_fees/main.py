"""Entry point for preparing the fee telemetry database.

Loads settings, opens the configured SQLite database (which applies any
pending schema migrations), and logs the applied schema versions and
row counts. Collectors and query services share the same database
through FeeDatabase and FeeTelemetryStore.
"""

import asyncio
import sys

from stellar_fees.config import AppSettings
from stellar_fees.data.database import FeeDatabase
from stellar_fees.data.store import FeeTelemetryStore
from stellar_fees.exceptions import FeeStoreError
from stellar_fees.logging import get_logger, setup_logging


async def run(settings: AppSettings | None = None) -> int:
    """Migrate the database and report its state. Returns a process exit code."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("stellar_fees.main")

    try:
        async with FeeDatabase(
            settings.database.url,
            busy_timeout_ms=settings.database.busy_timeout_ms,
        ) as database:
            store = FeeTelemetryStore(database, validate=settings.database.validate_values)
            logger.info(
                "fee_db_ready",
                db_path=database.db_path,
                schema_versions=await database.applied_migrations(),
                fee_data_points=await store.count_fee_data_points(),
                fee_snapshots=await store.count_fee_snapshots(),
            )
    except FeeStoreError as exc:
        logger.error("fee_db_setup_failed", error=str(exc))
        return 1
    return 0


def main() -> None:
    """Synchronous entry point."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
