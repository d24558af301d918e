"""Live fee processor.

Follows new block headers over a WebSocket subscription and writes one fee
record per block.

Processing flow:
1. WebSocket receives newHeads notifications -> Queue
2. Consumer takes each header:
   - Fetch the full block over JSON-RPC (newHeads payloads omit size)
   - Estimate next base fee and tier recommendations
   - Save the record through the sink

Usage:
    python -m blockfees.fees.live
"""

import asyncio
import json
import signal
import sys

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError
from websockets.asyncio.client import connect

from blockfees.fees.estimator import InvalidHeaderError, estimate_block_fees
from blockfees.fees.models import BlockFeeRecord, FeeParameters
from blockfees.fees.sink import DatabaseFeeSink, FeeRecordSink
from blockfees.helpers.config import get_eth_rpc_url, get_eth_ws_url, get_fee_parameters
from blockfees.helpers.constants import (
    DEFAULT_TIMEOUT,
    HEADERS_QUEUE_SIZE,
    RECONNECT_BASE_DELAY,
    RECONNECT_MAX_DELAY,
)
from blockfees.helpers.db import create_tables
from blockfees.helpers.logging import get_logger
from blockfees.helpers.parsers import parse_block_header, parse_hex_block_number
from blockfees.helpers.rpc import RPCClient
from blockfees.helpers.rpc_models import (
    EthSubscribeNewHeadsRequest,
    SubscriptionNotification,
)


if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

logger = get_logger(__name__)


class LiveFeeProcessor:
    """Estimates fees for live Ethereum blocks with a queue-based architecture."""

    def __init__(
        self,
        ws_url: str | None = None,
        rpc_url: str | None = None,
        sink: FeeRecordSink | None = None,
        params: FeeParameters | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the live processor.

        Args:
            ws_url: WebSocket endpoint, ETH_WS_URL if None
            rpc_url: JSON-RPC endpoint, ETH_RPC_URL if None
            sink: Where records go, the block_fees table by default
            params: Estimator constants, read from the environment if None
            http_client: HTTP client for RPC calls, a new one if None

        Raises:
            ValueError: If ETH_WS_URL or ETH_RPC_URL are needed but not set
        """
        self.ws_url = get_eth_ws_url(ws_url)
        self.rpc_client = RPCClient(get_eth_rpc_url(rpc_url))
        self.sink = sink if sink is not None else DatabaseFeeSink()
        self.params = params if params is not None else get_fee_parameters()
        self.http_client = http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

        self.headers_queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(
            maxsize=HEADERS_QUEUE_SIZE
        )

        # Stats
        self.blocks_received = 0
        self.blocks_processed = 0
        self.blocks_rejected = 0
        self.last_block_number = 0
        self.reconnect_count = 0

        self.should_shutdown = False

    async def connect_and_subscribe(self) -> None:
        """Connect to WebSocket and subscribe to newHeads with auto-reconnect."""
        retry_delay = RECONNECT_BASE_DELAY

        while not self.should_shutdown:
            try:
                logger.info("Connecting to %s", self.ws_url)
                async with connect(
                    self.ws_url,
                    ping_interval=20,
                    ping_timeout=10,
                ) as websocket:
                    subscribed = await self._subscribe(websocket)
                    if subscribed:
                        retry_delay = RECONNECT_BASE_DELAY
                        await self._stream_headers(websocket)

            except ConnectionError as e:
                logger.warning("WebSocket connection closed: %s", e)
            except Exception:
                logger.exception("WebSocket error")

            if not self.should_shutdown:
                self.reconnect_count += 1
                logger.info(
                    "Reconnecting in %s s (attempt %s)",
                    retry_delay,
                    self.reconnect_count,
                )
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, RECONNECT_MAX_DELAY)

    async def _subscribe(self, websocket: "ClientConnection") -> bool:
        """Send eth_subscribe and wait for the confirmation."""
        await websocket.send(EthSubscribeNewHeadsRequest(id=1).model_dump_json())
        response_data = json.loads(await websocket.recv())

        if "result" not in response_data:
            logger.error("Subscription failed: %s", response_data)
            return False

        logger.info("Subscribed to newHeads: %s", response_data["result"])
        return True

    async def _stream_headers(self, websocket: "ClientConnection") -> None:
        """Push newHeads notifications into the queue until the socket closes."""
        async for message in websocket:
            if self.should_shutdown:
                break
            self.enqueue_message(message)

    def enqueue_message(self, message: str | bytes) -> bool:
        """Parse one WebSocket message and queue its header.

        Returns:
            True if a header was queued
        """
        try:
            notification = SubscriptionNotification.model_validate_json(message)
        except ValidationError:
            logger.debug("Ignoring non-notification message: %s", message)
            return False

        header = notification.params.result
        self.blocks_received += 1
        self.last_block_number = parse_hex_block_number(header)
        logger.info("New block #%s", self.last_block_number)

        try:
            self.headers_queue.put_nowait(header)
        except asyncio.QueueFull:
            logger.warning(
                "Header queue full, dropping block #%s", self.last_block_number
            )
            return False
        return True

    async def fetch_block(self, block_number: int) -> dict[str, Any] | None:
        """Fetch a block header over JSON-RPC, None if the node doesn't have it."""
        return await self.rpc_client.get_block_by_number(self.http_client, block_number)

    async def handle_header(self, raw_header: dict[str, Any]) -> BlockFeeRecord | None:
        """Fetch, estimate and store one block.

        Returns:
            The stored record, or None if the block was skipped
        """
        block_number = parse_hex_block_number(raw_header)

        try:
            block_data = await self.fetch_block(block_number)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch block %s: %s", block_number, e)
            return None

        if not block_data:
            logger.warning("No result for block %s", block_number)
            return None

        try:
            header = parse_block_header(block_data)
            record = estimate_block_fees(header, self.params)
        except InvalidHeaderError as e:
            self.blocks_rejected += 1
            logger.warning("Skipping block %s: %s", block_number, e)
            return None
        except (KeyError, ValueError) as e:
            logger.error("Failed to parse block %s: %s", block_number, e)
            return None

        await self.sink.save(record)
        self.blocks_processed += 1
        logger.info(
            "Stored fees for block #%s (expected base fee %s)",
            record.number,
            record.base_fee_per_gas_expected,
        )
        return record

    async def process_queue(self) -> None:
        """Consume block headers from the queue one at a time."""
        logger.info("Header queue consumer started")

        while not self.should_shutdown:
            try:
                # Timeout so the shutdown flag is checked regularly
                raw_header = await asyncio.wait_for(
                    self.headers_queue.get(), timeout=1.0
                )
            except TimeoutError:
                continue
            except asyncio.CancelledError:
                logger.info("Header queue consumer cancelled")
                break

            try:
                await self.handle_header(raw_header)
            except asyncio.CancelledError:
                logger.info("Header queue consumer cancelled")
                break
            except Exception:
                logger.exception("Error processing block header")
            finally:
                self.headers_queue.task_done()

    def shutdown(self) -> None:
        """Gracefully shutdown the processor."""
        logger.info("Shutdown signal received, stopping...")
        self.should_shutdown = True

    async def cleanup(self) -> None:
        """Clean up resources."""
        await self.http_client.aclose()

    async def run(self) -> None:
        """Run subscriber and consumer until shutdown."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.shutdown)

        try:
            if isinstance(self.sink, DatabaseFeeSink):
                await create_tables()

            tasks = [
                asyncio.create_task(self.connect_and_subscribe()),
                asyncio.create_task(self.process_queue()),
            ]
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            await self.cleanup()

        logger.info(
            "Live processor stopped: %s received, %s stored, %s rejected",
            self.blocks_received,
            self.blocks_processed,
            self.blocks_rejected,
        )


async def main() -> None:
    """Main entry point."""
    try:
        processor = LiveFeeProcessor()
        await processor.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, exiting...")
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
