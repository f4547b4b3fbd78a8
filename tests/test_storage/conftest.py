"""Pytest fixtures for storage tests."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_connection() -> AsyncMock:
    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="OK")
    conn.fetchval = AsyncMock(return_value=1)
    return conn


@pytest.fixture
def mock_database(mock_connection) -> AsyncMock:
    """Mock Database whose transaction() yields mock_connection."""

    @asynccontextmanager
    async def _connection():
        yield mock_connection

    db = AsyncMock()
    db.transaction = MagicMock(side_effect=_connection)
    db.acquire = MagicMock(side_effect=_connection)
    return db
