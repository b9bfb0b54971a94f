"""
Bondex Pricing Oracle adapter

The engine never prices trades itself. It asks a PricingOracle for the unit
price of an asset at a given in-pool supply, passing the four curve constants
carried by the asset's token:

    price(supply, params) -> unit price, scaled by PRICE_SCALE (10**6)

Oracle contract (not verified by the engine beyond what CheckedPricingOracle
enforces):
  - deterministic and side-effect free
  - defined over the full [0, MAX_POOL_SUPPLY] supply domain
  - non-increasing in the in-pool supply it is given, i.e. non-decreasing
    in the supply already sold out of the pool (reference_supply - supply)
  - strictly positive result (the buy path divides by it)
"""

from __future__ import annotations

from typing import Protocol

from ..constants import MAX_POOL_SUPPLY, PRICE_SCALE, UINT256_MAX
from ..exceptions import BoundsError, PricingError
from ..logger import get_logger
from ..tokens.token import CurveParams

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Oracle interface (Protocol for structural typing)
# ---------------------------------------------------------------------------

class PricingOracle(Protocol):
    """Protocol that pricing functions must implement."""

    def price(self, supply: int, params: CurveParams) -> int: ...


# ---------------------------------------------------------------------------
# Reference curves
# ---------------------------------------------------------------------------

class PiecewiseCurve:
    """
    Reference two-segment bonding curve.

    With sold = max(0, reference_supply - supply):

        sold <  threshold:  base_price + slope * sold / 10**6
        sold >= threshold:  base_price + slope * threshold / 10**6

    The price rises linearly while the pool is bought down and is flat once
    `threshold` units have left it.
    """

    def price(self, supply: int, params: CurveParams) -> int:
        if supply < 0 or supply > MAX_POOL_SUPPLY:
            raise BoundsError(f"supply {supply} outside [0, {MAX_POOL_SUPPLY}]")
        sold = params.reference_supply - supply if supply < params.reference_supply else 0
        if sold >= params.threshold:
            sold = params.threshold
        return params.base_price + (params.slope * sold) // PRICE_SCALE


class ConstantPriceCurve:
    """Flat price regardless of supply. Useful for tools and tests."""

    def __init__(self, unit_price: int):
        self.unit_price = unit_price

    def price(self, supply: int, params: CurveParams) -> int:
        return self.unit_price


# ---------------------------------------------------------------------------
# Contract enforcement at the engine boundary
# ---------------------------------------------------------------------------

class CheckedPricingOracle:
    """
    Wraps an oracle and enforces its result contract.

    A zero price would turn the buy division into a division by zero, and a
    non-integer or out-of-domain price would poison every downstream checked
    operation, so both are rejected here with PricingError.
    """

    def __init__(self, inner: PricingOracle):
        self.inner = inner

    def price(self, supply: int, params: CurveParams) -> int:
        try:
            value = self.inner.price(supply, params)
        except BoundsError:
            raise
        except (ArithmeticError, ValueError, TypeError) as e:
            raise PricingError(f"pricing oracle failed at supply {supply}: {e}") from e

        if not isinstance(value, int) or isinstance(value, bool):
            raise PricingError(
                f"pricing oracle returned {type(value).__name__}, expected int"
            )
        if value <= 0:
            logger.warning("Pricing oracle returned non-positive price %s at supply %s", value, supply)
            raise PricingError(f"pricing oracle returned non-positive price {value}")
        if value > UINT256_MAX:
            raise PricingError(f"pricing oracle returned out-of-range price {value}")
        return value
