"""
Checked unsigned integer arithmetic.

Every quantity the engine stores (supply, reserves, balances) lives in the
unsigned 256-bit domain [0, UINT256_MAX]. Python integers never wrap, so the
domain is enforced explicitly: any operation whose operands or result fall
outside it raises UnsignedArithmeticError instead of producing a value.
"""

from __future__ import annotations

from ..constants import BPS_DENOMINATOR, UINT256_MAX
from ..exceptions import UnsignedArithmeticError


def require_uint(name: str, value: int) -> int:
    """Return *value* if it is an int inside the uint256 domain."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise UnsignedArithmeticError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise UnsignedArithmeticError(f"{name} underflows uint256: {value}")
    if value > UINT256_MAX:
        raise UnsignedArithmeticError(f"{name} overflows uint256: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    return require_uint("a + b", a + b)


def checked_sub(a: int, b: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    if b > a:
        raise UnsignedArithmeticError(f"subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    return require_uint("a * b", a * b)


def checked_div(a: int, b: int) -> int:
    """Floor division; division by zero is an arithmetic fault."""
    require_uint("a", a)
    require_uint("b", b)
    if b == 0:
        raise UnsignedArithmeticError(f"division by zero: {a} / 0")
    return a // b


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute floor(a * b / denominator) with the product held in uint256.

    The intermediate product is checked, matching a runtime that multiplies
    before dividing in the same fixed-width domain.
    """
    return checked_div(checked_mul(a, b), denominator)


def bps_of(amount: int, bps: int) -> int:
    """floor(amount * bps / 10_000)."""
    if not (0 <= bps <= BPS_DENOMINATOR):
        raise UnsignedArithmeticError(f"bps must be in [0, {BPS_DENOMINATOR}]: {bps}")
    return mul_div(amount, bps, BPS_DENOMINATOR)
