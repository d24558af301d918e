"""Tests for database helper functions."""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from blockfees.fees.db import BlockFeeDB
from blockfees.fees.estimator import estimate_block_fees
from blockfees.fees.models import BlockFeeRecord, BlockHeader
from blockfees.helpers.db import build_upsert_statement, upsert_models


MakeHeader = Callable[..., BlockHeader]


def _records(make_header: MakeHeader, count: int) -> list[BlockFeeRecord]:
    return [estimate_block_fees(make_header(number=n)) for n in range(count)]


def _session_factory(session: AsyncMock) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = None
    return factory


class TestBuildUpsertStatement:
    """Tests for build_upsert_statement."""

    def test_conflicts_on_block_number(self, make_header: MakeHeader) -> None:
        """Test that the upsert targets the primary key and updates the rest."""
        data = [r.model_dump() for r in _records(make_header, 2)]

        stmt = build_upsert_statement(BlockFeeDB, data)
        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert "INSERT INTO block_fees" in sql
        assert "ON CONFLICT (number) DO UPDATE" in sql
        assert "base_fee_per_gas_expected = excluded.base_fee_per_gas_expected" in sql
        assert "number = excluded.number" not in sql


class TestUpsertModels:
    """Unit tests for upsert_models with the session mocked."""

    @pytest.mark.asyncio
    async def test_uses_given_session(self, make_header: MakeHeader) -> None:
        """Test that an explicit session is executed and committed."""
        session = AsyncMock()

        await upsert_models(
            db_model_class=BlockFeeDB,
            pydantic_models=_records(make_header, 3),
            session=session,
        )

        session.execute.assert_awaited_once()
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_opens_session_from_factory(self, make_header: MakeHeader) -> None:
        """Test that a fresh session is opened when none is given."""
        session = AsyncMock()
        factory = _session_factory(session)

        await upsert_models(
            db_model_class=BlockFeeDB,
            pydantic_models=_records(make_header, 1),
            session_factory=factory,
        )

        factory.assert_called_once_with()
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_list_is_noop(self) -> None:
        """Test that nothing is executed for an empty list."""
        session = AsyncMock()

        await upsert_models(
            db_model_class=BlockFeeDB, pydantic_models=[], session=session
        )

        session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, make_header: MakeHeader) -> None:
        """Test that a failed execute rolls back and re-raises."""
        session = AsyncMock()
        session.execute.side_effect = RuntimeError("deadlock")

        with pytest.raises(RuntimeError, match="deadlock"):
            await upsert_models(
                db_model_class=BlockFeeDB,
                pydantic_models=_records(make_header, 1),
                session=session,
            )

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
