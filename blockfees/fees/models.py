"""Pydantic models for block headers and computed fee records."""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator, model_validator
from pydantic.alias_generators import to_camel

from blockfees.fees.constants import (
    BASE_FEE_MAX_CHANGE_DENOMINATOR,
    ECO_MAX_PRIORITY_FEE_PER_GAS,
    ELASTICITY_MULTIPLIER,
    FAST_MAX_PRIORITY_FEE_PER_GAS,
    MAX_FEE_BASE_MULTIPLIER,
    STANDARD_MAX_PRIORITY_FEE_PER_GAS,
)


class FeeTier(StrEnum):
    """Inclusion-speed preference for a recommendation."""

    ECO = "eco"
    STANDARD = "standard"
    FAST = "fast"


class FeeParameters(BaseModel):
    """Numeric constants used by the fee estimator.

    Changing the defaults changes every stored recommendation, so deployments
    override them explicitly instead.
    """

    base_fee_max_change_denominator: int = Field(
        default=BASE_FEE_MAX_CHANGE_DENOMINATOR,
        gt=0,
        description="Divisor bounding the per-block base fee change",
    )
    eco_priority_fee: NonNegativeInt = Field(
        default=ECO_MAX_PRIORITY_FEE_PER_GAS,
        description="Eco tier max priority fee per gas (wei)",
    )
    standard_priority_fee: NonNegativeInt = Field(
        default=STANDARD_MAX_PRIORITY_FEE_PER_GAS,
        description="Standard tier max priority fee per gas (wei)",
    )
    fast_priority_fee: NonNegativeInt = Field(
        default=FAST_MAX_PRIORITY_FEE_PER_GAS,
        description="Fast tier max priority fee per gas (wei)",
    )
    max_fee_base_multiplier: NonNegativeInt = Field(
        default=MAX_FEE_BASE_MULTIPLIER,
        description="Multiplier applied to the expected base fee in max fee recommendations",
    )
    elasticity_multiplier: int = Field(
        default=ELASTICITY_MULTIPLIER,
        gt=0,
        description="Gas limit divided by this gives the gas target",
    )

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_tier_order(self) -> Self:
        """Priority fees must not decrease from eco to fast."""
        if not (
            self.eco_priority_fee <= self.standard_priority_fee <= self.fast_priority_fee
        ):
            msg = "priority fees must satisfy eco <= standard <= fast"
            raise ValueError(msg)
        return self

    def priority_fee(self, tier: FeeTier) -> int:
        """Max priority fee per gas for a tier."""
        return {
            FeeTier.ECO: self.eco_priority_fee,
            FeeTier.STANDARD: self.standard_priority_fee,
            FeeTier.FAST: self.fast_priority_fee,
        }[tier]


DEFAULT_FEE_PARAMETERS = FeeParameters()


class BlockHeader(BaseModel):
    """Subset of an Ethereum block header needed for fee estimation.

    A missing base fee marks a pre-London (non EIP-1559) block. Quantities are
    strict ints: floats are rejected even when integral.
    """

    hash: bytes = Field(..., description="Block hash")
    number: NonNegativeInt = Field(..., description="Block number", strict=True)
    timestamp: NonNegativeInt = Field(
        ..., description="Block timestamp (Unix seconds)", strict=True
    )
    size: NonNegativeInt = Field(..., description="Block size in bytes", strict=True)
    gas_used: NonNegativeInt = Field(
        ..., description="Gas used", alias="gasUsed", strict=True
    )
    gas_limit: NonNegativeInt = Field(
        ..., description="Gas limit", alias="gasLimit", strict=True
    )
    base_fee_per_gas: NonNegativeInt | None = Field(
        default=None,
        strict=True,
        description="Base fee per gas in wei, None before EIP-1559",
        alias="baseFeePerGas",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("hash", mode="before")
    @classmethod
    def decode_hex_hash(cls, value: object) -> object:
        """Decode hex strings, with or without the 0x prefix, into raw bytes."""
        if isinstance(value, str):
            if value.startswith(("0x", "0X")):
                value = value[2:]
            return bytes.fromhex(value)
        return value


class TierRecommendation(BaseModel):
    """Recommended fee pair for one tier."""

    tier: FeeTier
    max_priority_fee_per_gas: NonNegativeInt
    max_fee_per_gas: NonNegativeInt

    model_config = ConfigDict(frozen=True)


FEE_FIELDS = (
    "base_fee_per_gas",
    "base_fee_per_gas_expected",
    "eco_max_priority_fee_per_gas_recommended",
    "standard_max_priority_fee_per_gas_recommended",
    "fast_max_priority_fee_per_gas_recommended",
    "eco_max_fee_per_gas_recommended",
    "standard_max_fee_per_gas_recommended",
    "fast_max_fee_per_gas_recommended",
)


class BlockFeeRecord(BaseModel):
    """Fee estimation result for one block.

    Fee fields are all set when ``eip1559`` is true and all None otherwise.
    Field aliases are the camelCase names used by JSON consumers.
    """

    hash: bytes
    number: NonNegativeInt
    timestamp: NonNegativeInt
    size: NonNegativeInt
    gas_used: NonNegativeInt
    gas_limit: NonNegativeInt
    eip1559: bool

    base_fee_per_gas: NonNegativeInt | None = None
    base_fee_per_gas_expected: NonNegativeInt | None = None
    eco_max_priority_fee_per_gas_recommended: NonNegativeInt | None = None
    standard_max_priority_fee_per_gas_recommended: NonNegativeInt | None = None
    fast_max_priority_fee_per_gas_recommended: NonNegativeInt | None = None
    eco_max_fee_per_gas_recommended: NonNegativeInt | None = None
    standard_max_fee_per_gas_recommended: NonNegativeInt | None = None
    fast_max_fee_per_gas_recommended: NonNegativeInt | None = None

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
    )

    @model_validator(mode="after")
    def check_fee_fields(self) -> Self:
        """Fee fields must be all present (EIP-1559) or all absent."""
        present = [name for name in FEE_FIELDS if getattr(self, name) is not None]
        if self.eip1559 and len(present) != len(FEE_FIELDS):
            missing = sorted(set(FEE_FIELDS) - set(present))
            msg = f"EIP-1559 record is missing fee fields: {', '.join(missing)}"
            raise ValueError(msg)
        if not self.eip1559 and present:
            msg = f"non EIP-1559 record has fee fields set: {', '.join(present)}"
            raise ValueError(msg)
        return self

    @property
    def hash_hex(self) -> str:
        """Block hash as a 0x-prefixed hex string."""
        return "0x" + self.hash.hex()

    def recommendation(self, tier: FeeTier) -> TierRecommendation | None:
        """Recommended (priority fee, max fee) pair for a tier.

        Returns None for non EIP-1559 blocks.
        """
        if not self.eip1559:
            return None
        prefix = FeeTier(tier).value
        return TierRecommendation(
            tier=tier,
            max_priority_fee_per_gas=getattr(
                self, f"{prefix}_max_priority_fee_per_gas_recommended"
            ),
            max_fee_per_gas=getattr(self, f"{prefix}_max_fee_per_gas_recommended"),
        )


__all__ = [
    "DEFAULT_FEE_PARAMETERS",
    "FEE_FIELDS",
    "BlockFeeRecord",
    "BlockHeader",
    "FeeParameters",
    "FeeTier",
    "TierRecommendation",
]
