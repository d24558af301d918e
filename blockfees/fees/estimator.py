"""EIP-1559 next-block base fee and fee recommendation estimator.

Gas used vs target : base fee change for the next block
    0%   : -12.5%
    100% : unchanged
    200% : +12.5%

The target is the block gas limit unless an elasticity multiplier is
configured. All arithmetic is integer floor division, in the same order as the
EIP-1559 reference: ``fee * delta // target // denominator``. Reordering it
changes results.

Max fee recommendations follow the ethers.js heuristic (twice the expected
base fee plus the tip), with one tip per speed tier.
"""

from blockfees.fees.arithmetic import bigint_max
from blockfees.fees.constants import MIN_BASE_FEE_INCREASE
from blockfees.fees.models import (
    DEFAULT_FEE_PARAMETERS,
    BlockFeeRecord,
    BlockHeader,
    FeeParameters,
    FeeTier,
)


class InvalidHeaderError(ValueError):
    """Raised when a header cannot be used for fee estimation."""

    def __init__(self, block_number: int, gas_limit: int, reason: str) -> None:
        self.block_number = block_number
        self.gas_limit = gas_limit
        self.reason = reason
        super().__init__(f"Invalid header for block {block_number}: {reason}")


def expected_base_fee(
    base_fee_per_gas: int,
    gas_used: int,
    gas_target: int,
    denominator: int,
) -> int:
    """Compute the next block's base fee.

    Args:
        base_fee_per_gas: Current block base fee in wei
        gas_used: Gas used by the current block
        gas_target: Gas level at which the base fee stays unchanged, > 0
        denominator: Base fee max change denominator, > 0

    Returns:
        Expected base fee per gas for the next block

    Raises:
        ZeroDivisionError: If gas_target or denominator is zero
    """
    if gas_used == gas_target:
        return base_fee_per_gas

    if gas_used > gas_target:
        gas_used_delta = gas_used - gas_target
        base_fee_delta = bigint_max(
            base_fee_per_gas * gas_used_delta // gas_target // denominator,
            MIN_BASE_FEE_INCREASE,
        )
        return base_fee_per_gas + base_fee_delta

    gas_used_delta = gas_target - gas_used
    base_fee_delta = base_fee_per_gas * gas_used_delta // gas_target // denominator
    return base_fee_per_gas - base_fee_delta


def estimate_block_fees(
    header: BlockHeader,
    params: FeeParameters = DEFAULT_FEE_PARAMETERS,
) -> BlockFeeRecord:
    """Estimate the next base fee and tiered fee recommendations for a block.

    Headers without a base fee produce a record with ``eip1559=False`` and no
    fee fields. This is not an error.

    The gas limit is only checked on the EIP-1559 path, since only that path
    divides by it. A header with no base fee and a zero gas limit therefore
    still gets a legacy record rather than ``InvalidHeaderError``.

    Args:
        header: Block header to estimate from
        params: Estimator constants

    Returns:
        BlockFeeRecord for the header

    Raises:
        InvalidHeaderError: If an EIP-1559 header has a zero gas limit, or a
            gas limit below the elasticity multiplier (zero gas target)
    """
    block_fields = {
        "hash": header.hash,
        "number": header.number,
        "timestamp": header.timestamp,
        "size": header.size,
        "gas_used": header.gas_used,
        "gas_limit": header.gas_limit,
    }

    base_fee_per_gas = header.base_fee_per_gas
    if base_fee_per_gas is None:
        return BlockFeeRecord(**block_fields, eip1559=False)

    if header.gas_limit == 0:
        raise InvalidHeaderError(header.number, header.gas_limit, "gas limit is zero")

    gas_target = header.gas_limit // params.elasticity_multiplier
    if gas_target == 0:
        raise InvalidHeaderError(
            header.number,
            header.gas_limit,
            f"gas target is zero (elasticity multiplier {params.elasticity_multiplier})",
        )

    base_fee_per_gas_expected = expected_base_fee(
        base_fee_per_gas,
        header.gas_used,
        gas_target,
        params.base_fee_max_change_denominator,
    )

    fee_fields: dict[str, int] = {
        "base_fee_per_gas": base_fee_per_gas,
        "base_fee_per_gas_expected": base_fee_per_gas_expected,
    }
    base_fee_headroom = base_fee_per_gas_expected * params.max_fee_base_multiplier
    for tier in FeeTier:
        priority_fee = params.priority_fee(tier)
        fee_fields[f"{tier}_max_priority_fee_per_gas_recommended"] = priority_fee
        fee_fields[f"{tier}_max_fee_per_gas_recommended"] = (
            base_fee_headroom + priority_fee
        )

    return BlockFeeRecord(**block_fields, eip1559=True, **fee_fields)


__all__ = ["InvalidHeaderError", "estimate_block_fees", "expected_base_fee"]
