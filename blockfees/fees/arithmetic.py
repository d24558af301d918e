"""Integer helpers for fee arithmetic."""


def bigint_max(left: int, right: int) -> int:
    """Return the greater of two integers, ``left`` when they are equal.

    Python ints are arbitrary precision, so this never overflows.
    """
    if right > left:
        return right
    return left


__all__ = ["bigint_max"]
