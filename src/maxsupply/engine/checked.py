"""Checked integer arithmetic over the token contract's uint256 range.

Python integers never wrap, so overflow here means "would not be
representable on-chain". Every amount the engine produces passes through
these helpers.
"""

from .errors import ArithmeticOverflowError

UINT256_MAX = 2 ** 256 - 1


def ensure_uint(value: int, what: str = "value") -> int:
    """Return value if it lies in [0, UINT256_MAX], else raise."""
    if value < 0 or value > UINT256_MAX:
        raise ArithmeticOverflowError(f"{what} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int, what: str = "sum") -> int:
    return ensure_uint(a + b, what)


def checked_mul(a: int, b: int, what: str = "product") -> int:
    return ensure_uint(a * b, what)


def checked_sum(values, what: str = "sum") -> int:
    """Sum an iterable, checking the running total after every term."""
    total = 0
    for value in values:
        total = checked_add(total, value, what)
    return total


def mul_div(a: int, b: int, denominator: int, what: str = "pro-rata share") -> int:
    """
    Compute floor(a * b / denominator) with a checked intermediate.

    Args:
        a: Left factor
        b: Right factor
        denominator: Divisor, must be positive

    Returns:
        Floored quotient
    """
    if denominator <= 0:
        raise ArithmeticOverflowError(f"{what}: non-positive denominator {denominator}")
    return checked_mul(a, b, what) // denominator
