"""
Buy / sell computations.

Pure functions over a PoolRecord and a price lookup. The engine uses them for
execution and for read-only previews, so a preview and the trade it predicts
can never disagree. The order of operations is part of the algorithm:

  buy:  fee on the input, then price at the PRE-trade supply
  sell: price at the POST-trade supply, then fee on the output

Buying at the pre-trade supply and selling at the post-trade supply makes an
immediate buy-then-sell round trip lossy to the trader beyond the two fees.

Rounding is always floor, always in the pool's favour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..constants import FEE_BPS, MAX_POOL_SUPPLY, PRICE_SCALE
from ..exceptions import BoundsError, InsolvencyError
from .checked import bps_of, checked_add, checked_sub, mul_div, require_uint
from .ledger import PoolRecord

PriceLookup = Callable[[int], int]


@dataclass(frozen=True)
class BuyQuote:
    quote_in: int
    fee: int
    net_in: int
    unit_price: int
    token_out: int
    supply_after: int
    reserve_after: int


@dataclass(frozen=True)
class SellQuote:
    token_in: int
    unit_price: int
    gross_out: int
    fee: int
    net_out: int
    supply_after: int
    reserve_after: int


def compute_fee(amount: int) -> int:
    """floor(amount * FEE_BPS / 10_000)"""
    return bps_of(amount, FEE_BPS)


def compute_buy(pool: PoolRecord, quote_in: int, price_at: PriceLookup) -> BuyQuote:
    """
    Spend `quote_in` quote units against `pool`.

        fee       = floor(quote_in * FEE_BPS / 10_000)
        net_in    = quote_in - fee
        price     = price_at(pool.supply)
        token_out = floor(net_in * 10**6 / price)

    Raises:
        BoundsError: quote_in is zero
        UnsignedArithmeticError: token_out exceeds the pool supply
    """
    require_uint("quote_in", quote_in)
    if quote_in == 0:
        raise BoundsError("quote_in must be positive")

    fee = compute_fee(quote_in)
    net_in = checked_sub(quote_in, fee)

    unit_price = price_at(pool.supply)
    token_out = mul_div(net_in, PRICE_SCALE, unit_price)

    supply_after = checked_sub(pool.supply, token_out)
    if supply_after > MAX_POOL_SUPPLY:
        raise BoundsError(f"supply {supply_after} exceeds max {MAX_POOL_SUPPLY}")

    # The fee stays in the engine's balance, not in the pool reserve.
    reserve_after = checked_add(pool.quote_reserve, net_in)

    return BuyQuote(
        quote_in=quote_in,
        fee=fee,
        net_in=net_in,
        unit_price=unit_price,
        token_out=token_out,
        supply_after=supply_after,
        reserve_after=reserve_after,
    )


def compute_sell(pool: PoolRecord, token_in: int, price_at: PriceLookup) -> SellQuote:
    """
    Return `token_in` asset units to `pool`.

        supply_after = pool.supply + token_in          (<= MAX_POOL_SUPPLY)
        price        = price_at(supply_after)
        gross_out    = floor(token_in * price / 10**6)
        fee          = floor(gross_out * FEE_BPS / 10_000)
        net_out      = gross_out - fee                 (<= pool.quote_reserve)

    Raises:
        BoundsError: token_in is zero, or supply_after exceeds MAX_POOL_SUPPLY
        InsolvencyError: net_out exceeds the pool's quote reserve
    """
    require_uint("token_in", token_in)
    if token_in == 0:
        raise BoundsError("token_in must be positive")

    supply_after = checked_add(pool.supply, token_in)
    if supply_after > MAX_POOL_SUPPLY:
        raise BoundsError(
            f"sell of {token_in} would raise supply to {supply_after}, max {MAX_POOL_SUPPLY}"
        )

    unit_price = price_at(supply_after)
    gross_out = mul_div(token_in, unit_price, PRICE_SCALE)
    fee = compute_fee(gross_out)
    net_out = checked_sub(gross_out, fee)

    if net_out > pool.quote_reserve:
        raise InsolvencyError(
            f"Pool {pool.asset_id} cannot pay {net_out}: reserve is {pool.quote_reserve}"
        )
    reserve_after = checked_sub(pool.quote_reserve, net_out)

    return SellQuote(
        token_in=token_in,
        unit_price=unit_price,
        gross_out=gross_out,
        fee=fee,
        net_out=net_out,
        supply_after=supply_after,
        reserve_after=reserve_after,
    )
