"""Tests for the live fee processor."""

import asyncio
import json

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from blockfees.fees.live import LiveFeeProcessor
from blockfees.fees.models import FeeParameters
from blockfees.fees.sink import InMemoryFeeSink


def _processor(sink: InMemoryFeeSink | None = None) -> LiveFeeProcessor:
    return LiveFeeProcessor(
        ws_url="wss://test.ws",
        rpc_url="https://test.rpc",
        sink=sink if sink is not None else InMemoryFeeSink(),
        params=FeeParameters(),
        http_client=AsyncMock(spec=httpx.AsyncClient),
    )


def _notification(number: int) -> str:
    return json.dumps({
        "jsonrpc": "2.0",
        "method": "eth_subscription",
        "params": {
            "subscription": "0xsub",
            "result": {"number": hex(number), "hash": "0x" + "ab" * 32},
        },
    })


class TestInit:
    """Tests for LiveFeeProcessor initialization."""

    def test_missing_urls_raise(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that missing endpoints are reported."""
        monkeypatch.delenv("ETH_WS_URL", raising=False)

        with pytest.raises(ValueError, match="Ethereum WebSocket URL"):
            LiveFeeProcessor(rpc_url="https://test.rpc", sink=InMemoryFeeSink())

    def test_initial_stats(self) -> None:
        """Test that counters start at zero."""
        processor = _processor()

        assert processor.blocks_received == 0
        assert processor.blocks_processed == 0
        assert processor.blocks_rejected == 0
        assert processor.should_shutdown is False


class TestEnqueueMessage:
    """Tests for parsing WebSocket messages into the queue."""

    def test_notification_is_queued(self) -> None:
        """Test that a newHeads notification lands in the queue."""
        processor = _processor()

        assert processor.enqueue_message(_notification(100)) is True

        assert processor.headers_queue.qsize() == 1
        assert processor.blocks_received == 1
        assert processor.last_block_number == 100

    def test_subscription_confirmation_ignored(self) -> None:
        """Test that the eth_subscribe response is not treated as a header."""
        processor = _processor()

        queued = processor.enqueue_message(
            json.dumps({"jsonrpc": "2.0", "id": 1, "result": "0xsub"})
        )

        assert queued is False
        assert processor.headers_queue.empty()

    def test_invalid_json_ignored(self) -> None:
        """Test that garbage messages are ignored."""
        processor = _processor()

        assert processor.enqueue_message("not json") is False

    def test_full_queue_drops_header(self) -> None:
        """Test that a full queue drops the header instead of blocking."""
        processor = _processor()
        processor.headers_queue = asyncio.Queue(maxsize=1)

        assert processor.enqueue_message(_notification(1)) is True
        assert processor.enqueue_message(_notification(2)) is False
        assert processor.headers_queue.qsize() == 1


class TestHandleHeader:
    """Tests for fetching, estimating and storing a block."""

    @pytest.mark.asyncio
    async def test_fetch_block_uses_rpc(self, rpc_block: dict[str, Any]) -> None:
        """Test that fetch_block asks the node for the block by number."""
        processor = _processor()
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]

        assert await processor.fetch_block(15_000_000) == rpc_block
        processor.rpc_client.get_block_by_number.assert_awaited_once_with(
            processor.http_client, 15_000_000
        )

    @pytest.mark.asyncio
    async def test_stores_record(self, rpc_block: dict[str, Any]) -> None:
        """Test the happy path from header to stored record."""
        sink = InMemoryFeeSink()
        processor = _processor(sink)
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]

        record = await processor.handle_header({"number": rpc_block["number"]})

        assert record is not None
        assert record.base_fee_per_gas_expected == 104_166_666_666
        assert sink.get(15_000_000) == record
        assert processor.blocks_processed == 1

    @pytest.mark.asyncio
    async def test_legacy_block_stored(self, rpc_block: dict[str, Any]) -> None:
        """Test that a pre-London block is stored as a legacy record."""
        del rpc_block["baseFeePerGas"]
        sink = InMemoryFeeSink()
        processor = _processor(sink)
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]

        record = await processor.handle_header({"number": rpc_block["number"]})

        assert record is not None
        assert record.eip1559 is False
        assert len(sink) == 1

    @pytest.mark.asyncio
    async def test_invalid_header_rejected(self, rpc_block: dict[str, Any]) -> None:
        """Test that a zero gas limit block is counted and not stored."""
        rpc_block["gasLimit"] = "0x0"
        sink = InMemoryFeeSink()
        processor = _processor(sink)
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]

        record = await processor.handle_header({"number": rpc_block["number"]})

        assert record is None
        assert processor.blocks_rejected == 1
        assert len(sink) == 0

    @pytest.mark.asyncio
    async def test_missing_block_skipped(self) -> None:
        """Test that an unknown block is skipped."""
        processor = _processor()
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=None)  # type: ignore[method-assign]

        assert await processor.handle_header({"number": "0x1"}) is None
        assert processor.blocks_processed == 0

    @pytest.mark.asyncio
    async def test_rpc_failure_skipped(self) -> None:
        """Test that RPC errors are logged and the block skipped."""
        processor = _processor()
        processor.rpc_client.get_block_by_number = AsyncMock(  # type: ignore[method-assign]
            side_effect=httpx.ConnectError("refused")
        )

        assert await processor.handle_header({"number": "0x1"}) is None

    @pytest.mark.asyncio
    async def test_malformed_block_skipped(self, rpc_block: dict[str, Any]) -> None:
        """Test that a block missing required fields is skipped."""
        del rpc_block["gasUsed"]
        processor = _processor()
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]

        assert await processor.handle_header({"number": rpc_block["number"]}) is None
        assert processor.blocks_rejected == 0


class TestProcessQueue:
    """Tests for the queue consumer."""

    @pytest.mark.asyncio
    async def test_consumes_until_shutdown(self, rpc_block: dict[str, Any]) -> None:
        """Test that queued headers are processed and shutdown stops the loop."""
        sink = InMemoryFeeSink()
        processor = _processor(sink)
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]
        processor.headers_queue.put_nowait({"number": rpc_block["number"]})

        consumer = asyncio.create_task(processor.process_queue())
        await asyncio.wait_for(processor.headers_queue.join(), timeout=5.0)
        processor.shutdown()
        await asyncio.wait_for(consumer, timeout=5.0)

        assert len(sink) == 1

    @pytest.mark.asyncio
    async def test_sink_error_does_not_stop_consumer(
        self, rpc_block: dict[str, Any]
    ) -> None:
        """Test that a failing save is logged and the next header still runs."""
        sink = MagicMock()
        sink.save = AsyncMock(side_effect=[RuntimeError("db down"), None])
        processor = _processor()
        processor.sink = sink
        processor.rpc_client.get_block_by_number = AsyncMock(return_value=rpc_block)  # type: ignore[method-assign]
        processor.headers_queue.put_nowait({"number": "0x1"})
        processor.headers_queue.put_nowait({"number": "0x2"})

        consumer = asyncio.create_task(processor.process_queue())
        await asyncio.wait_for(processor.headers_queue.join(), timeout=5.0)
        processor.shutdown()
        await asyncio.wait_for(consumer, timeout=5.0)

        assert sink.save.await_count == 2
        assert processor.blocks_processed == 1
