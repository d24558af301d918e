"""Fee estimation constants. All amounts are in wei per gas."""

BASE_FEE_MAX_CHANGE_DENOMINATOR = 8
"""Bounds the per-block base fee change to 1/8 (12.5%)"""

ELASTICITY_MULTIPLIER = 1
"""Gas limit / gas target ratio. 1 means the target is the full gas limit"""

MAX_FEE_BASE_MULTIPLIER = 2
"""Headroom applied to the expected base fee when recommending a max fee"""

ECO_MAX_PRIORITY_FEE_PER_GAS = 1_200_000_000
"""1.2 gwei tip for the eco tier"""

STANDARD_MAX_PRIORITY_FEE_PER_GAS = 1_500_000_000
"""1.5 gwei tip for the standard tier"""

FAST_MAX_PRIORITY_FEE_PER_GAS = 1_800_000_000
"""1.8 gwei tip for the fast tier"""

MIN_BASE_FEE_INCREASE = 1
"""Smallest base fee increase for a block above its gas target"""


__all__ = [
    "BASE_FEE_MAX_CHANGE_DENOMINATOR",
    "ECO_MAX_PRIORITY_FEE_PER_GAS",
    "ELASTICITY_MULTIPLIER",
    "FAST_MAX_PRIORITY_FEE_PER_GAS",
    "MAX_FEE_BASE_MULTIPLIER",
    "MIN_BASE_FEE_INCREASE",
    "STANDARD_MAX_PRIORITY_FEE_PER_GAS",
]
