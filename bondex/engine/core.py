"""
Bondex Bonding-Curve Engine

Single-quote-asset exchange engine. Each launch asset gets one pool; the pool
sells the asset for the quote asset and buys it back, at a unit price given by
the pricing oracle as a function of the supply still in the pool.

Entry points and who may call them:
  - set_quote_asset / set_factory / set_router / set_fee_collector   owner
  - register                                                          factory
  - buy / sell                                                        router
  - withdraw_fees                                                     fee collector
  - get_price / quote_buy / quote_sell / quote_balance / fee_surplus  anyone

Every mutating call is atomic: a failure anywhere, including inside a token
transfer, restores the pool ledger, the configuration and the balances and
allowances of every registered token to what they were before the call, and
records no event.

Fees stay in the engine's quote balance alongside the pool reserves; there is
no separate fee account. `withdraw_fees` is bounded only by that total
balance, so a large withdrawal can draw down funds the pools consider their
reserve. `fee_surplus()` reports the difference.
"""

from __future__ import annotations

import hashlib
from typing import List, Optional

from ..constants import MAX_POOL_SUPPLY
from ..exceptions import (
    BoundsError,
    ConfigError,
    InsolvencyError,
    PoolStateError,
    PricingError,
    TransferError,
)
from ..logger import get_logger
from ..tokens.token import CurveToken, FungibleToken, TokenError, TokenRegistry
from .access import AccessGate, GlobalConfig
from .atomic import ReentrancyGuard, Snapshottable, atomic_call
from .checked import checked_sub, require_uint
from .events import (
    Bought,
    EventLog,
    FeeCollectorChanged,
    FeesWithdrawn,
    PoolRegistered,
    RouterChanged,
    Sold,
)
from .ledger import PoolLedger, PoolRecord
from .pricing import CheckedPricingOracle, PiecewiseCurve, PricingOracle
from .trade import BuyQuote, SellQuote, compute_buy, compute_sell

logger = get_logger(__name__)


def engine_address(owner: str) -> str:
    """Deterministic custody address for an engine deployed by `owner`."""
    raw = f"engine:{owner}".encode()
    return "0x" + hashlib.blake2b(raw, digest_size=20).hexdigest()


class BondingCurveEngine:
    """
    Pool ledger, trade execution and fee custody behind one access gate.

    Args:
        owner: identity allowed to configure the engine; fixed for its lifetime
        registry: token registry resolving asset ids and the quote-asset handle
        oracle: pricing oracle; wrapped in CheckedPricingOracle unless it
            already is one. Defaults to the reference PiecewiseCurve.
        address: custody address the engine holds balances under
    """

    def __init__(
        self,
        owner: str,
        registry: TokenRegistry,
        oracle: Optional[PricingOracle] = None,
        address: Optional[str] = None,
    ):
        self._gate = AccessGate(owner)
        self._registry = registry
        if oracle is None:
            oracle = PiecewiseCurve()
        if not isinstance(oracle, CheckedPricingOracle):
            oracle = CheckedPricingOracle(oracle)
        self._oracle = oracle
        self.address = address or engine_address(owner)

        self._ledger = PoolLedger()
        self._events = EventLog()
        self._guard = ReentrancyGuard()

        logger.info("Bonding-curve engine deployed at %s (owner %s)", self.address, owner)

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def config(self) -> GlobalConfig:
        return self._gate.config

    @property
    def ledger(self) -> PoolLedger:
        return self._ledger

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def oracle(self) -> PricingOracle:
        return self._oracle

    @property
    def in_call(self) -> bool:
        return self._guard.locked

    def pool(self, asset_id: str) -> PoolRecord:
        return self._ledger.get(asset_id)

    # ── Configuration (owner) ─────────────────────────────────────────

    def set_quote_asset(self, caller: str, quote_asset: str) -> None:
        self._gate.require_owner(caller)
        if not isinstance(quote_asset, str) or not self._registry.exists(quote_asset):
            raise ConfigError(f"quote asset {quote_asset!r} is not a registered token")
        self._configure(caller, "quote_asset", quote_asset)

    def set_factory(self, caller: str, factory: str) -> None:
        self._configure(caller, "factory", factory)

    def set_router(self, caller: str, router: str) -> None:
        old = self._configure(caller, "router", router)
        self._emit_config_event(RouterChanged(old=old, new=router))

    def set_fee_collector(self, caller: str, fee_collector: str) -> None:
        old = self._configure(caller, "fee_collector", fee_collector)
        self._emit_config_event(FeeCollectorChanged(old=old, new=fee_collector))

    def _configure(self, caller: str, field_name: str, value: str) -> Optional[str]:
        old = self._gate.assign(caller, field_name, value)
        logger.info("Config %s: %s -> %s", field_name, old, value)
        return old

    def _emit_config_event(self, event) -> None:
        self._events.emit(event)
        # Inside a running call the event belongs to that call and commits
        # or rolls back with it.
        if not self._guard.locked:
            self._events.commit()

    # ── Token resolution ──────────────────────────────────────────────

    def _quote_token(self) -> FungibleToken:
        handle = self._gate.config.quote_asset
        if handle is None:
            raise ConfigError("quote asset is not configured")
        token = self._registry.get(handle)
        if token is None:
            raise ConfigError(f"quote asset {handle} is not a registered token")
        return token

    def _asset_token(self, asset_id: str) -> FungibleToken:
        token = self._registry.get(asset_id)
        if token is None:
            raise PoolStateError(f"asset {asset_id} is not a registered token")
        return token

    def _participants(self) -> List[Snapshottable]:
        # Token hooks may move any registered token, not only the two a call
        # transfers, so every token in the registry is checkpointed.
        participants: List[Snapshottable] = [self._ledger, self._gate]
        participants.extend(self._registry.tokens())
        return participants

    # ── External transfers ────────────────────────────────────────────

    def _pull(self, token: FungibleToken, sender: str, amount: int) -> None:
        try:
            token.transfer_from(self.address, sender, self.address, amount)
        except TokenError as e:
            raise TransferError(
                f"failed to pull {amount} {token.symbol} from {sender}: {e}"
            ) from e

    def _pay(self, token: FungibleToken, recipient: str, amount: int) -> None:
        try:
            token.transfer(self.address, recipient, amount)
        except TokenError as e:
            raise TransferError(
                f"failed to pay {amount} {token.symbol} to {recipient}: {e}"
            ) from e

    # ── Pricing ───────────────────────────────────────────────────────

    def get_price(self, asset_id: str, supply: int) -> int:
        """
        Unit price of `asset_id` at in-pool `supply`, scaled by 10**6.

        Raises:
            PoolStateError: no pool for asset_id
            BoundsError: supply exceeds MAX_POOL_SUPPLY
            PricingError: the asset carries no curve, or the oracle misbehaved
        """
        self._ledger.get(asset_id)
        require_uint("supply", supply)
        if supply > MAX_POOL_SUPPLY:
            raise BoundsError(f"supply {supply} exceeds max {MAX_POOL_SUPPLY}")

        token = self._asset_token(asset_id)
        if not isinstance(token, CurveToken):
            raise PricingError(f"asset {asset_id} carries no curve parameters")
        return self._oracle.price(supply, token.curve_params)

    price_at = get_price

    # ── Registration (factory) ────────────────────────────────────────

    def register(
        self,
        caller: str,
        asset_id: str,
        creator: str,
        initial_supply: int,
        initial_quote: int,
    ) -> PoolRecord:
        """
        Create the pool for `asset_id`, seeded with `initial_supply` asset
        units and `initial_quote` quote units pulled from the caller.

        Registration is write-once: a second call for the same asset fails.
        """
        self._gate.require_factory(caller)
        require_uint("initial_supply", initial_supply)
        require_uint("initial_quote", initial_quote)
        if self._ledger.exists(asset_id):
            raise PoolStateError(f"Pool for asset {asset_id} already exists")
        if initial_supply > MAX_POOL_SUPPLY:
            raise BoundsError(
                f"initial supply {initial_supply} exceeds max {MAX_POOL_SUPPLY}"
            )
        if initial_quote == 0:
            raise BoundsError("initial quote must be positive")

        asset = self._asset_token(asset_id)
        quote = self._quote_token()

        with atomic_call("register", self._guard, self._events, self._participants()):
            self._pull(asset, caller, initial_supply)
            self._pull(quote, caller, initial_quote)
            record = self._ledger.create(asset_id, creator, initial_supply, initial_quote)
            self._events.emit(
                PoolRegistered(
                    asset=asset_id,
                    creator=creator,
                    initial_supply=initial_supply,
                    initial_quote=initial_quote,
                )
            )

        logger.info(
            "Pool registered: %s by %s, supply=%s quote=%s",
            asset_id, creator, initial_supply, initial_quote,
        )
        return record

    # ── Trading (router) ──────────────────────────────────────────────

    def quote_buy(self, asset_id: str, quote_in: int) -> BuyQuote:
        """Preview of `buy` against current state. Changes nothing."""
        pool = self._ledger.get(asset_id)
        return compute_buy(pool, quote_in, lambda s: self.get_price(asset_id, s))

    def quote_sell(self, asset_id: str, token_in: int) -> SellQuote:
        """Preview of `sell` against current state. Changes nothing."""
        pool = self._ledger.get(asset_id)
        return compute_sell(pool, token_in, lambda s: self.get_price(asset_id, s))

    def buy(self, caller: str, asset_id: str, quote_in: int, recipient: str) -> int:
        """
        Spend `quote_in` quote units from the caller on `asset_id`; the asset
        goes to `recipient`. Priced at the pre-trade supply.

        Returns the number of asset units paid out.
        """
        self._gate.require_router(caller)
        require_uint("quote_in", quote_in)
        if quote_in == 0:
            raise BoundsError("quote_in must be positive")
        self._ledger.get(asset_id)

        asset = self._asset_token(asset_id)
        quote = self._quote_token()

        with atomic_call("buy", self._guard, self._events, self._participants()):
            self._pull(quote, caller, quote_in)

            pool = self._ledger.get(asset_id)
            trade = compute_buy(pool, quote_in, lambda s: self.get_price(asset_id, s))
            self._ledger.apply(
                asset_id, supply=trade.supply_after, quote_reserve=trade.reserve_after
            )

            self._pay(asset, recipient, trade.token_out)
            self._events.emit(
                Bought(buyer=caller, asset=asset_id, quote_in=quote_in, token_out=trade.token_out)
            )

        logger.debug(
            "Buy %s: quote_in=%s fee=%s price=%s token_out=%s -> %s",
            asset_id, quote_in, trade.fee, trade.unit_price, trade.token_out, recipient,
        )
        return trade.token_out

    def sell(self, caller: str, asset_id: str, token_in: int, recipient: str) -> int:
        """
        Return `token_in` asset units from the caller to the pool; the quote
        proceeds go to `recipient`. Priced at the post-trade supply.

        Returns the number of quote units paid out, net of fee.
        """
        self._gate.require_router(caller)
        require_uint("token_in", token_in)
        if token_in == 0:
            raise BoundsError("token_in must be positive")
        self._ledger.get(asset_id)

        asset = self._asset_token(asset_id)
        quote = self._quote_token()

        with atomic_call("sell", self._guard, self._events, self._participants()):
            self._pull(asset, caller, token_in)

            pool = self._ledger.get(asset_id)
            trade = compute_sell(pool, token_in, lambda s: self.get_price(asset_id, s))
            self._ledger.apply(
                asset_id, supply=trade.supply_after, quote_reserve=trade.reserve_after
            )

            self._pay(quote, recipient, trade.net_out)
            self._events.emit(
                Sold(seller=caller, asset=asset_id, token_in=token_in, quote_out=trade.net_out)
            )

        logger.debug(
            "Sell %s: token_in=%s price=%s gross=%s fee=%s net_out=%s -> %s",
            asset_id, token_in, trade.unit_price, trade.gross_out, trade.fee,
            trade.net_out, recipient,
        )
        return trade.net_out

    # ── Fees (fee collector) ──────────────────────────────────────────

    def quote_balance(self) -> int:
        """Quote units in engine custody: every pool reserve plus uncollected fees."""
        return self._quote_token().balance_of(self.address)

    def fee_surplus(self) -> int:
        """
        Engine quote balance minus the sum of pool reserves.

        Negative once fee withdrawals have dipped into reserve funds.
        """
        return self.quote_balance() - self._ledger.total_quote_reserve()

    def withdraw_fees(self, caller: str, amount: int) -> None:
        """
        Pay `amount` quote units from engine custody to the fee collector.

        Bounded by the engine's total quote balance only.
        """
        self._gate.require_fee_collector(caller)
        require_uint("amount", amount)
        quote = self._quote_token()

        with atomic_call("withdraw_fees", self._guard, self._events, self._participants()):
            balance = quote.balance_of(self.address)
            if amount > balance:
                raise InsolvencyError(
                    f"withdrawal of {amount} exceeds engine quote balance {balance}"
                )
            collector = self._gate.config.fee_collector
            self._pay(quote, collector, amount)
            self._events.emit(FeesWithdrawn(collector=collector, amount=amount))
            remaining = checked_sub(balance, amount)

        if remaining < self._ledger.total_quote_reserve():
            logger.warning(
                "Fee withdrawal left engine balance %s below pool reserves %s",
                remaining, self._ledger.total_quote_reserve(),
            )
        logger.info("Fees withdrawn: %s to %s", amount, collector)

    def to_dict(self):
        return {
            "address": self.address,
            "config": self._gate.config.to_dict(),
            "pools": [p.to_dict() for p in self._ledger],
        }

    def __repr__(self) -> str:
        return f"<BondingCurveEngine {self.address} pools={self._ledger.pool_count}>"
