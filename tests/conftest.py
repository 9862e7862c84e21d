"""Shared test fixtures for the fee telemetry store."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from stellar_fees.config import AppSettings, DatabaseSettings
from stellar_fees.data.database import FeeDatabase
from stellar_fees.data.store import FeeTelemetryStore


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings pointing at an in-memory database."""
    return AppSettings(
        log_level="DEBUG",
        database=DatabaseSettings(url="sqlite::memory:"),
    )


@pytest_asyncio.fixture
async def database() -> AsyncIterator[FeeDatabase]:
    """Connected, migrated in-memory FeeDatabase."""
    async with FeeDatabase("sqlite::memory:") as db:
        yield db


@pytest_asyncio.fixture
async def store(database: FeeDatabase) -> FeeTelemetryStore:
    """FeeTelemetryStore with validation enabled."""
    return FeeTelemetryStore(database)
