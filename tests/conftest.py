"""Pytest configuration and shared fixtures."""

import os

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from blockfees.fees.models import BlockHeader
from blockfees.helpers.db import Base, get_async_engine, get_session_factory


GWEI = 10**9


@pytest.fixture
def make_header() -> Callable[..., BlockHeader]:
    """Factory for block headers with mainnet-like defaults.

    Returns:
        Callable building a BlockHeader; keyword arguments override defaults
    """

    def _make_header(**overrides: Any) -> BlockHeader:
        fields: dict[str, Any] = {
            "hash": bytes.fromhex("ab" * 32),
            "number": 15_000_000,
            "timestamp": 1_657_000_000,
            "size": 80_000,
            "gas_used": 15_000_000,
            "gas_limit": 15_000_000,
            "base_fee_per_gas": 100 * GWEI,
        }
        fields.update(overrides)
        return BlockHeader(**fields)

    return _make_header


@pytest.fixture
def rpc_block() -> dict[str, Any]:
    """Raw eth_getBlockByNumber result (hex quantities, camelCase keys)."""
    return {
        "number": hex(15_000_000),
        "hash": "0x" + "ab" * 32,
        "parentHash": "0x" + "cd" * 32,
        "timestamp": hex(1_657_000_000),
        "size": hex(80_000),
        "gasUsed": hex(20_000_000),
        "gasLimit": hex(15_000_000),
        "baseFeePerGas": hex(100 * GWEI),
        "miner": "0x" + "11" * 20,
        "transactions": [],
    }


@pytest_asyncio.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session with fresh tables for integration tests.

    Skips when SKIP_INTEGRATION_TESTS=1 or the database is unreachable.

    Yields:
        AsyncSession: Database session for testing
    """
    if os.getenv("SKIP_INTEGRATION_TESTS") == "1":
        pytest.skip("Integration tests disabled")

    try:
        engine = get_async_engine()
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        pytest.skip(f"Database not available: {e}")

    async with get_session_factory()() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
