"""Destinations for computed fee records.

The estimator only builds records; whoever drives it picks a sink and saves
each record exactly once.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from blockfees.fees.db import BlockFeeDB
from blockfees.fees.models import BlockFeeRecord
from blockfees.helpers.db import upsert_models


@runtime_checkable
class FeeRecordSink(Protocol):
    """Anything that can persist fee records."""

    async def save(self, record: BlockFeeRecord) -> None: ...

    async def save_many(self, records: Sequence[BlockFeeRecord]) -> None: ...


class InMemoryFeeSink:
    """Keeps records in memory, keyed by block number. Later saves replace earlier ones."""

    def __init__(self) -> None:
        self._records: dict[int, BlockFeeRecord] = {}
        self.save_calls = 0

    async def save(self, record: BlockFeeRecord) -> None:
        await self.save_many([record])

    async def save_many(self, records: Sequence[BlockFeeRecord]) -> None:
        self.save_calls += 1
        for record in records:
            self._records[record.number] = record

    @property
    def records(self) -> list[BlockFeeRecord]:
        """Stored records ordered by block number."""
        return [self._records[number] for number in sorted(self._records)]

    def get(self, number: int) -> BlockFeeRecord | None:
        return self._records.get(number)

    def __len__(self) -> int:
        return len(self._records)


class DatabaseFeeSink:
    """Upserts fee records into the block_fees table, keyed by block number."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] | None = None
    ) -> None:
        """Initialize the sink.

        Args:
            session_factory: Session factory to write with. Defaults to the
                shared factory built from POSTGRE_* environment variables.
        """
        self.session_factory = session_factory
        self.records_saved = 0

    async def save(self, record: BlockFeeRecord) -> None:
        await self.save_many([record])

    async def save_many(self, records: Sequence[BlockFeeRecord]) -> None:
        if not records:
            return
        # One row per block in a single statement, later records win
        unique = list({record.number: record for record in records}.values())
        await upsert_models(
            db_model_class=BlockFeeDB,
            pydantic_models=unique,
            session_factory=self.session_factory,
        )
        self.records_saved += len(unique)


__all__ = ["DatabaseFeeSink", "FeeRecordSink", "InMemoryFeeSink"]
