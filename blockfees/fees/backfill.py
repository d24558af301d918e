"""Backfill fee records for a historical block range via JSON-RPC.

Usage:
    python -m blockfees.fees.backfill 12965000 12966000
"""

import argparse
import asyncio

import httpx
from rich.console import Console

from blockfees.fees.models import BlockHeader, FeeParameters
from blockfees.fees.pipeline import ProcessingStats, process_headers
from blockfees.fees.sink import DatabaseFeeSink, FeeRecordSink, InMemoryFeeSink
from blockfees.helpers.backfill import BackfillBase
from blockfees.helpers.config import get_eth_rpc_url, get_fee_parameters
from blockfees.helpers.constants import (
    DEFAULT_PARALLEL_BATCHES,
    EXTENDED_TIMEOUT,
    LONDON_BLOCK,
    RPC_BATCH_SIZE,
)
from blockfees.helpers.db import create_tables
from blockfees.helpers.logging import get_logger
from blockfees.helpers.parsers import parse_block_header
from blockfees.helpers.progress import create_standard_progress, track_batches
from blockfees.helpers.rpc import RPCClient

logger = get_logger(__name__)


class BackfillFees(BackfillBase):
    """Compute and store fee records for every block in a range."""

    def __init__(
        self,
        start_block: int,
        end_block: int | None = None,
        rpc_url: str | None = None,
        sink: FeeRecordSink | None = None,
        batch_size: int = RPC_BATCH_SIZE,
        parallel_batches: int = DEFAULT_PARALLEL_BATCHES,
        params: FeeParameters | None = None,
        console: Console | None = None,
    ) -> None:
        """Initialize backfill.

        Args:
            start_block: First block to process (inclusive)
            end_block: Last block to process (inclusive), latest block if None
            rpc_url: Ethereum JSON-RPC endpoint (defaults to env var ETH_RPC_URL)
            sink: Where records go, the block_fees table by default
            batch_size: Number of blocks per JSON-RPC batch request
            parallel_batches: Number of batch requests to run in parallel
            params: Estimator constants, read from the environment if None
            console: Console for progress output

        Raises:
            ValueError: If the block range is invalid or no RPC URL is configured
        """
        super().__init__(batch_size, console)
        if start_block < 0:
            msg = f"start_block must be non-negative, got {start_block}"
            raise ValueError(msg)
        if end_block is not None and end_block < start_block:
            msg = f"end_block {end_block} is before start_block {start_block}"
            raise ValueError(msg)
        if parallel_batches <= 0:
            msg = f"parallel_batches must be positive, got {parallel_batches}"
            raise ValueError(msg)

        self.start_block = start_block
        self.end_block = end_block
        self.parallel_batches = parallel_batches
        self.rpc_client = RPCClient(get_eth_rpc_url(rpc_url), timeout=EXTENDED_TIMEOUT)
        self.sink = sink if sink is not None else DatabaseFeeSink()
        self.params = params if params is not None else get_fee_parameters()

    async def _fetch_headers(
        self, client: httpx.AsyncClient, block_numbers: list[int]
    ) -> list[BlockHeader]:
        """Fetch and parse one batch of blocks. Failed blocks are logged and left out."""
        try:
            blocks = await self.rpc_client.batch_get_blocks(client, block_numbers)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                f"Batch request for blocks {block_numbers[0]}-{block_numbers[-1]} failed: {e}"
            )
            return []

        if len(blocks) < len(block_numbers):
            missing = sorted(set(block_numbers) - set(blocks))
            logger.warning(f"Node returned no data for {len(missing)} blocks: {missing}")

        headers: list[BlockHeader] = []
        for number, block_data in blocks.items():
            try:
                headers.append(parse_block_header(block_data))
            except (KeyError, ValueError) as e:
                logger.error(f"Error parsing block {number}: {e}")
        return headers

    async def _process_batch(
        self, client: httpx.AsyncClient, block_numbers: list[int]
    ) -> ProcessingStats:
        headers = await self._fetch_headers(client, block_numbers)
        return await process_headers(headers, self.sink, self.params)

    async def _resolve_end_block(self, client: httpx.AsyncClient) -> int:
        if self.end_block is not None:
            return self.end_block
        return await self.rpc_client.get_block_number(client)

    async def run(self, client: httpx.AsyncClient | None = None) -> ProcessingStats:
        """Run the backfill.

        Args:
            client: HTTP client to use; a new one is created and closed if None

        Returns:
            Aggregate ProcessingStats for the range
        """
        if isinstance(self.sink, DatabaseFeeSink):
            await create_tables()

        if client is not None:
            return await self._run(client)

        async with httpx.AsyncClient(timeout=EXTENDED_TIMEOUT) as new_client:
            return await self._run(new_client)

    async def _run(self, client: httpx.AsyncClient) -> ProcessingStats:
        end_block = await self._resolve_end_block(client)
        stats = ProcessingStats()
        if end_block < self.start_block:
            self.console.print(
                f"[yellow]Nothing to do: latest block {end_block:,} is before {self.start_block:,}[/yellow]"
            )
            return stats

        block_numbers = list(range(self.start_block, end_block + 1))
        batches = [
            block_numbers[i : i + self.batch_size]
            for i in range(0, len(block_numbers), self.batch_size)
        ]

        self.console.print(
            f"[bold blue]Backfilling fees for blocks {self.start_block:,} to {end_block:,}[/bold blue]"
        )
        self.console.print(
            f"[cyan]{len(batches)} batches of up to {self.batch_size} blocks, "
            f"{self.parallel_batches} in parallel[/cyan]"
        )

        progress = create_standard_progress(self.console)
        with progress:
            task_id = progress.add_task("Estimating fees", total=len(block_numbers))

            for i in range(0, len(batches), self.parallel_batches):
                parallel_chunk = batches[i : i + self.parallel_batches]

                results = await asyncio.gather(
                    *[self._process_batch(client, batch) for batch in parallel_chunk]
                )

                for offset, (batch, batch_stats) in enumerate(
                    zip(parallel_chunk, results, strict=True), start=1
                ):
                    stats.merge(batch_stats)
                    track_batches(
                        progress,
                        task_id,
                        i + offset,
                        len(batches),
                        len(batch),
                        "Estimating fees",
                    )

        self.console.print(
            f"[green]Done: {stats.processed:,} records "
            f"({stats.eip1559:,} EIP-1559, {stats.legacy:,} legacy), "
            f"{stats.rejected:,} rejected[/green]"
        )
        if stats.rejected_blocks:
            logger.warning(f"Rejected blocks: {stats.rejected_blocks}")

        return stats


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill block fee records")
    parser.add_argument(
        "start_block",
        type=int,
        nargs="?",
        default=LONDON_BLOCK,
        help="first block (default: London fork block)",
    )
    parser.add_argument(
        "end_block", type=int, nargs="?", default=None, help="last block (default: latest)"
    )
    parser.add_argument("--batch-size", type=int, default=RPC_BATCH_SIZE)
    parser.add_argument(
        "--parallel-batches", type=int, default=DEFAULT_PARALLEL_BATCHES
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="keep records in memory instead of writing to the database",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> ProcessingStats:
    args = parse_args(argv)
    sink: FeeRecordSink = InMemoryFeeSink() if args.dry_run else DatabaseFeeSink()
    backfill = BackfillFees(
        start_block=args.start_block,
        end_block=args.end_block,
        sink=sink,
        batch_size=args.batch_size,
        parallel_batches=args.parallel_batches,
    )
    return await backfill.run()


if __name__ == "__main__":
    asyncio.run(main())
