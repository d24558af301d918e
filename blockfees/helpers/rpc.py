"""Ethereum JSON-RPC client utilities."""

import operator

from typing import Any

import httpx

from blockfees.helpers.parsers import parse_hex_int
from blockfees.helpers.rpc_models import (
    EthBlockNumberRequest,
    EthGetBlockByNumberRequest,
    JsonRpcRequest,
)


class RPCClient:
    """Ethereum JSON-RPC client with batching support."""

    def __init__(self, rpc_url: str, timeout: float = 30.0) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout

    async def send(
        self,
        client: httpx.AsyncClient,
        request: JsonRpcRequest,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a single JSON-RPC request model.

        Raises:
            httpx.HTTPError: If the HTTP request fails
            ValueError: If the RPC response contains an error
        """
        response = await client.post(
            self.rpc_url,
            json=request.model_dump(),
            timeout=timeout or self.timeout,
        )
        response.raise_for_status()
        result = response.json()

        if "error" in result:
            msg = f"RPC error: {result['error']}"
            raise ValueError(msg)

        return result.get("result")

    async def batch_call(
        self,
        client: httpx.AsyncClient,
        requests: list[tuple[str, list[Any]]],
        *,
        timeout: float | None = None,
    ) -> list[Any]:
        """Make multiple JSON-RPC calls in a single batch request.

        Args:
            client: HTTP client instance
            requests: List of (method, params) tuples
            timeout: Optional timeout override

        Returns:
            List of results in the same order as requests (None for failed entries)

        Raises:
            httpx.HTTPError: If the HTTP request fails
        """
        if not requests:
            return []

        batch_payload = [
            JsonRpcRequest(method=method, params=params, id=idx).model_dump()
            for idx, (method, params) in enumerate(requests)
        ]

        response = await client.post(
            self.rpc_url, json=batch_payload, timeout=timeout or self.timeout
        )
        response.raise_for_status()
        results = response.json()

        # Sort by ID to match request order
        sorted_results = sorted(results, key=operator.itemgetter("id"))

        return [r.get("result") for r in sorted_results]

    async def get_block_number(self, client: httpx.AsyncClient) -> int:
        """Get the latest block number.

        Args:
            client: HTTP client instance

        Returns:
            Latest block number
        """
        result = await self.send(client, EthBlockNumberRequest(id=1))
        return parse_hex_int(result) if result else 0

    async def get_block_by_number(
        self, client: httpx.AsyncClient, block_number: int
    ) -> dict[str, Any] | None:
        """Fetch a block without transaction bodies.

        Returns:
            Raw block object, or None if the node does not know the block
        """
        request = EthGetBlockByNumberRequest(params=[hex(block_number), False], id=1)
        return await self.send(client, request)

    async def batch_get_blocks(
        self,
        client: httpx.AsyncClient,
        block_numbers: list[int],
        *,
        timeout: float | None = None,
    ) -> dict[int, dict[str, Any]]:
        """Fetch several blocks in one batch request.

        Args:
            client: HTTP client instance
            block_numbers: Block numbers to fetch
            timeout: Optional timeout override

        Returns:
            Dict mapping block number to raw block object. Blocks the node
            did not return are left out.

        Example:
            ```python
            rpc = RPCClient(rpc_url)
            async with httpx.AsyncClient() as client:
                blocks = await rpc.batch_get_blocks(client, [100, 101, 102])
            ```
        """
        results = await self.batch_call(
            client,
            [("eth_getBlockByNumber", [hex(n), False]) for n in block_numbers],
            timeout=timeout,
        )
        return {
            number: block
            for number, block in zip(block_numbers, results, strict=True)
            if block
        }


__all__ = ["RPCClient"]
