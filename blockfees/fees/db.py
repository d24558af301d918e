"""Database models for block fee records."""

from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Integer, LargeBinary, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from blockfees.helpers.db import Base

# uint256 needs 78 decimal digits
Wei = Numeric(78, 0)


class BlockFeeDB(Base):
    """Per-block fee estimation database model."""

    __tablename__ = "block_fees"

    number: Mapped[int] = mapped_column(BigInteger, primary_key=True, index=True)
    hash: Mapped[bytes] = mapped_column(LargeBinary(32), unique=True, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)  # Unix seconds
    size: Mapped[int] = mapped_column(Integer)
    gas_used: Mapped[int] = mapped_column(BigInteger)
    gas_limit: Mapped[int] = mapped_column(BigInteger)
    eip1559: Mapped[bool] = mapped_column(Boolean, nullable=False, index=True)

    # All fee columns are NULL for pre-London blocks
    base_fee_per_gas: Mapped[Decimal | None] = mapped_column(Wei, nullable=True)
    base_fee_per_gas_expected: Mapped[Decimal | None] = mapped_column(
        Wei, nullable=True
    )
    eco_max_priority_fee_per_gas_recommended: Mapped[Decimal | None] = mapped_column(
        Wei, nullable=True
    )
    standard_max_priority_fee_per_gas_recommended: Mapped[Decimal | None] = (
        mapped_column(Wei, nullable=True)
    )
    fast_max_priority_fee_per_gas_recommended: Mapped[Decimal | None] = mapped_column(
        Wei, nullable=True
    )
    eco_max_fee_per_gas_recommended: Mapped[Decimal | None] = mapped_column(
        Wei, nullable=True
    )
    standard_max_fee_per_gas_recommended: Mapped[Decimal | None] = mapped_column(
        Wei, nullable=True
    )
    fast_max_fee_per_gas_recommended: Mapped[Decimal | None] = mapped_column(
        Wei, nullable=True
    )
