"""Fixed-point integer arithmetic shared by every ledger component.

All money-like quantities are ``int`` values scaled by :data:`SCALE`
(1e18). Results are rounded down and any intermediate value outside
``[0, MAX_UINT256]`` raises :class:`Overflow`.
No floating point is used here or anywhere above it.
"""
from __future__ import annotations

from typing import Final

from .errors import DivideByZero, Overflow

SCALE: Final[int] = 10**18
BPS: Final[int] = 10_000
PERCENT: Final[int] = 100
MAX_UINT256: Final[int] = 2**256 - 1
SECONDS_PER_YEAR: Final[int] = 365 * 24 * 3600


def _check_range(value: int, what: str) -> int:
    if value < 0 or value > MAX_UINT256:
        raise Overflow(f"{what} out of range: {value}")
    return value


def mul_div(a: int, b: int, scale: int = SCALE) -> int:
    """Compute ``a * b / scale`` in integers.

    Raises:
        DivideByZero: if ``scale`` is zero.
        Overflow: if an input is negative or ``a * b`` exceeds MAX_UINT256.
    """
    if scale == 0:
        raise DivideByZero(f"mul_div({a}, {b}, 0)")
    _check_range(a, "operand")
    _check_range(b, "operand")
    _check_range(scale, "divisor")
    product = _check_range(a * b, "product")
    return product // scale


def checked_add(a: int, b: int) -> int:
    return _check_range(a + b, "sum")


def checked_sub(a: int, b: int) -> int:
    """Subtract, raising Overflow instead of going negative."""
    return _check_range(a - b, "difference")


def bps_of(amount: int, bps: int) -> int:
    """``amount * bps / 10_000`` rounded down."""
    return mul_div(amount, bps, BPS)


def bps_to_scaled(bps: int) -> int:
    """Convert basis points to a SCALE-denominated fraction (500 → 0.05e18)."""
    return mul_div(bps, SCALE, BPS)
