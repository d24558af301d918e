"""Parsing utilities for JSON-RPC block data."""

from typing import Any

from blockfees.fees.models import BlockHeader


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    return int(hex_value, 16)


def parse_hex_bytes(hex_value: str) -> bytes:
    """Parse a 0x-prefixed hex string into bytes.

    Example:
        >>> parse_hex_bytes("0x0aff")
        b'\\n\\xff'
    """
    if hex_value.startswith(("0x", "0X")):
        hex_value = hex_value[2:]
    return bytes.fromhex(hex_value)


def parse_hex_block_number(header: dict[str, Any]) -> int:
    """Parse block number from hex string in block header.

    Args:
        header: Block header dictionary containing a "number" field

    Returns:
        int: Block number as integer

    Example:
        >>> header = {"number": "0x1234"}
        >>> parse_hex_block_number(header)
        4660
    """
    return int(header.get("number", "0x0"), 16)


def parse_block_header(block_data: dict[str, Any]) -> BlockHeader:
    """Convert a JSON-RPC block object into a BlockHeader.

    Works on both eth_getBlockByNumber results and newHeads notifications.
    A missing baseFeePerGas key (pre-London block) maps to None.

    Args:
        block_data: Raw block data with hex quantities and camelCase keys

    Returns:
        BlockHeader

    Raises:
        KeyError: If a required field is missing
        ValueError: If a quantity is not valid hex
    """
    base_fee = block_data.get("baseFeePerGas")
    return BlockHeader(
        hash=parse_hex_bytes(block_data["hash"]),
        number=parse_hex_int(block_data["number"]),
        timestamp=parse_hex_int(block_data["timestamp"]),
        size=parse_hex_int(block_data.get("size")),
        gas_used=parse_hex_int(block_data["gasUsed"]),
        gas_limit=parse_hex_int(block_data["gasLimit"]),
        base_fee_per_gas=parse_hex_int(base_fee) if base_fee is not None else None,
    )


__all__ = [
    "parse_block_header",
    "parse_hex_block_number",
    "parse_hex_bytes",
    "parse_hex_int",
]
