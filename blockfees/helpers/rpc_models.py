"""Pydantic models for JSON-RPC requests and subscription messages."""

from typing import Any

from pydantic import BaseModel, Field


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(..., description="Request ID")


class EthBlockNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_blockNumber."""

    method: str = Field(default="eth_blockNumber", frozen=True)
    params: list[Any] = Field(default_factory=list, frozen=True)


class EthGetBlockByNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBlockByNumber."""

    method: str = Field(default="eth_getBlockByNumber", frozen=True)


class EthSubscribeNewHeadsRequest(JsonRpcRequest):
    """WebSocket subscription to new block headers."""

    method: str = Field(default="eth_subscribe", frozen=True)
    params: list[Any] = Field(default_factory=lambda: ["newHeads"], frozen=True)


class SubscriptionParams(BaseModel):
    """Payload of an eth_subscription notification."""

    subscription: str
    result: dict[str, Any]


class SubscriptionNotification(BaseModel):
    """eth_subscription notification pushed over the WebSocket."""

    jsonrpc: str = "2.0"
    method: str = Field(..., pattern="^eth_subscription$")
    params: SubscriptionParams


__all__ = [
    "EthBlockNumberRequest",
    "EthGetBlockByNumberRequest",
    "EthSubscribeNewHeadsRequest",
    "JsonRpcRequest",
    "SubscriptionNotification",
    "SubscriptionParams",
]
