"""
arithmetic.py - Unsigned integer helpers

Every amount in the system is an unsigned integer in the asset's smallest unit.
Python ints never wrap, so the bounds of a 256-bit unsigned word are enforced
explicitly: results outside [0, UINT256_MAX] raise instead of going negative
or growing without limit.
"""

from __future__ import annotations

from .core import ArithmeticOverflow, ArithmeticUnderflow


# Multiplier converting deposited collateral into leveraged balance.
MAX_LEVERAGE = 10

UINT256_MAX = 2 ** 256 - 1


def require_uint(name: str, value: int) -> int:
    """Validate that value is an unsigned integer within range."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    if value > UINT256_MAX:
        raise ValueError(f"{name} exceeds UINT256_MAX")
    return value


def abs_diff(a: int, b: int) -> int:
    """Absolute difference of two unsigned values, independent of ordering."""
    return a - b if a >= b else b - a


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflow(f"{a} + {b} overflows uint256")
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticUnderflow(f"{a} - {b} underflows uint256")
    return a - b


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflow(f"{a} * {b} overflows uint256")
    return result
