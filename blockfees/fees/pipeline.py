"""Batch driver for the fee estimator.

Each header is estimated independently; a rejected header is reported and the
rest of the batch carries on.
"""

from collections.abc import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field

from blockfees.fees.estimator import InvalidHeaderError, estimate_block_fees
from blockfees.fees.models import (
    DEFAULT_FEE_PARAMETERS,
    BlockFeeRecord,
    BlockHeader,
    FeeParameters,
)
from blockfees.fees.sink import FeeRecordSink
from blockfees.helpers.logging import get_logger

logger = get_logger(__name__)


class FeeEstimate(BaseModel):
    """Outcome of estimating one header: a record or the reason it was rejected."""

    block_number: int
    record: BlockFeeRecord | None = None
    error: str | None = None
    error_type: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return self.record is not None


class ProcessingStats(BaseModel):
    """Counters for a processed batch."""

    processed: int = 0
    eip1559: int = 0
    legacy: int = 0
    rejected: int = 0
    rejected_blocks: list[int] = Field(default_factory=list)

    def add(self, estimate: FeeEstimate) -> None:
        """Count one estimate."""
        if estimate.record is None:
            self.rejected += 1
            self.rejected_blocks.append(estimate.block_number)
            return
        self.processed += 1
        if estimate.record.eip1559:
            self.eip1559 += 1
        else:
            self.legacy += 1

    def merge(self, other: "ProcessingStats") -> None:
        """Fold another batch's counters into this one."""
        self.processed += other.processed
        self.eip1559 += other.eip1559
        self.legacy += other.legacy
        self.rejected += other.rejected
        self.rejected_blocks.extend(other.rejected_blocks)


def estimate_one(
    header: BlockHeader, params: FeeParameters = DEFAULT_FEE_PARAMETERS
) -> FeeEstimate:
    """Estimate a header, capturing an invalid header as a failed estimate."""
    try:
        record = estimate_block_fees(header, params)
    except InvalidHeaderError as e:
        return FeeEstimate(
            block_number=header.number, error=str(e), error_type=type(e).__name__
        )
    return FeeEstimate(block_number=header.number, record=record)


def estimate_many(
    headers: Iterable[BlockHeader],
    params: FeeParameters = DEFAULT_FEE_PARAMETERS,
) -> Iterator[FeeEstimate]:
    """Lazily estimate headers in input order, one FeeEstimate per header."""
    for header in headers:
        yield estimate_one(header, params)


async def process_headers(
    headers: Iterable[BlockHeader],
    sink: FeeRecordSink,
    params: FeeParameters = DEFAULT_FEE_PARAMETERS,
) -> ProcessingStats:
    """Estimate a batch of headers and save the resulting records.

    Successful records are handed to the sink in a single save_many call.
    Rejected headers are logged and counted, never saved.

    Args:
        headers: Headers to estimate
        sink: Destination for the records
        params: Estimator constants

    Returns:
        ProcessingStats for the batch
    """
    stats = ProcessingStats()
    records: list[BlockFeeRecord] = []

    for estimate in estimate_many(headers, params):
        stats.add(estimate)
        if estimate.record is None:
            logger.warning(f"Skipping block {estimate.block_number}: {estimate.error}")
            continue
        records.append(estimate.record)

    if records:
        await sink.save_many(records)

    return stats


__all__ = [
    "FeeEstimate",
    "ProcessingStats",
    "estimate_many",
    "estimate_one",
    "process_headers",
]
