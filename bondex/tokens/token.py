"""
Bondex token ledger

In-process fungible tokens the engine takes custody of and pays out of:
  - FungibleToken : integer balances with transfer / approve / transferFrom
  - CurveParams   : the four bonding-curve constants of a launch asset
  - CurveToken    : a launch asset carrying its CurveParams
  - TokenRegistry : handle -> token lookup used to resolve asset and quote ids

Transfers run registered transfer hooks synchronously after balances move and
before the call returns. Hooks stand in for arbitrary code inside a token
contract: they may call back into anything, including the engine. A hook that
raises aborts its transfer, which is undone before the error propagates.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..constants import (
    MAX_POOL_SUPPLY,
    TOKEN_DEFAULT_DECIMALS,
    TOKEN_MAX_SUPPLY,
    TOKEN_REGISTRY_MAX_TOKENS,
)
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  CURVE PARAMETERS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CurveParams:
    """
    The four bonding-curve constants a launch asset carries.

    Attributes:
        base_price: unit price (x10**6) while nothing has been bought out of the pool
        slope: price increase (x10**6) per whole asset unit bought out of the pool
        threshold: units bought out after which the price stops rising
        reference_supply: pool supply at launch; "bought out" is measured from here
    """
    base_price: int
    slope: int
    threshold: int
    reference_supply: int

    def __post_init__(self) -> None:
        for name in ("base_price", "slope", "threshold", "reference_supply"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.reference_supply > MAX_POOL_SUPPLY:
            raise ValueError(
                f"reference_supply {self.reference_supply} exceeds max pool supply {MAX_POOL_SUPPLY}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurveParams":
        return cls(
            base_price=int(data.get("base_price", 0)),
            slope=int(data.get("slope", 0)),
            threshold=int(data.get("threshold", 0)),
            reference_supply=int(data.get("reference_supply", 0)),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "base_price": self.base_price,
            "slope": self.slope,
            "threshold": self.threshold,
            "reference_supply": self.reference_supply,
        }


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(Exception):
    """Base exception for token operations."""


class InsufficientBalanceError(TokenError):
    """Raised when sender balance is too low."""


class InsufficientAllowanceError(TokenError):
    """Raised when spender allowance is too low."""


class TokenFrozenError(TokenError):
    """Raised when the token is frozen."""


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenTransferEvent:
    """Emitted on every successful transfer."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class TokenApprovalEvent:
    """Emitted on every successful approve."""
    token_symbol: str
    owner: str
    spender: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class TokenMintEvent:
    """Emitted when the issuer mints new units."""
    token_symbol: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Mint",
            "token": self.token_symbol,
            "to": self.recipient,
            "amount": self.amount,
        }


TransferHook = Callable[["FungibleToken", TokenTransferEvent], None]


def token_address(symbol: str, issuer: str) -> str:
    """Deterministic token handle derived from symbol and issuer."""
    raw = f"token:{symbol}:{issuer}".encode()
    return "0x" + hashlib.blake2b(raw, digest_size=20).hexdigest()


# ══════════════════════════════════════════════════════════════════════
#  FUNGIBLE TOKEN
# ══════════════════════════════════════════════════════════════════════

class FungibleToken:
    """
    Fungible token with ERC-20 semantics over integer base units.

        - balance_of(address) -> int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, sender, recipient, amount)
        - total_supply -> int
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int = TOKEN_DEFAULT_DECIMALS,
        total_supply: int = 0,
        issuer: str = "",
        *,
        max_supply: int = TOKEN_MAX_SUPPLY,
        address: Optional[str] = None,
    ):
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise TokenError(f"Decimals must be 0-18, got {decimals}")
        if total_supply < 0:
            raise TokenError("Total supply cannot be negative")
        if total_supply > max_supply:
            raise TokenError(f"Total supply {total_supply} exceeds max {max_supply}")

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.issuer = issuer
        self.max_supply = max_supply
        self.address = address or token_address(symbol, issuer)
        self._total_supply = total_supply
        self._frozen = False

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._events: List[Any] = []
        self._hooks: List[TransferHook] = []

        if total_supply > 0 and issuer:
            self._balances[issuer] = total_supply

        logger.info(f"Token deployed: {symbol} ({name}) at {self.address}, supply={total_supply}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    # ── Transfer hooks ────────────────────────────────────────────────

    def add_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def remove_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks = [h for h in self._hooks if h is not hook]

    # ── State guards ──────────────────────────────────────────────────

    def _require_not_frozen(self) -> None:
        if self._frozen:
            raise TokenFrozenError(f"Token {self.symbol} is frozen")

    @staticmethod
    def _require_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TokenError(f"Amount must be an int, got {type(amount).__name__}")
        if amount < 0:
            raise TokenError("Amount cannot be negative")

    # ── Core operations ───────────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount: int) -> TokenTransferEvent:
        """Move `amount` from sender to recipient."""
        self._require_not_frozen()
        self._require_amount(amount)
        if not recipient:
            raise TokenError("Recipient cannot be empty")

        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )
        return self._move(sender, recipient, amount)

    def approve(self, owner: str, spender: str, amount: int) -> TokenApprovalEvent:
        """Set spender allowance."""
        self._require_not_frozen()
        self._require_amount(amount)

        self._allowances[(owner, spender)] = amount
        event = TokenApprovalEvent(
            token_symbol=self.symbol,
            owner=owner,
            spender=spender,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Approve: {owner} -> {spender} allowance={amount} {self.symbol}")
        return event

    def transfer_from(
        self,
        spender: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> TokenTransferEvent:
        """Transfer on behalf of *sender* using spender's allowance."""
        self._require_not_frozen()
        self._require_amount(amount)
        if not recipient:
            raise TokenError("Recipient cannot be empty")

        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )

        allow = self.allowance(sender, spender)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )

        self._allowances[(sender, spender)] = allow - amount
        try:
            return self._move(sender, recipient, amount)
        except BaseException:
            self._allowances[(sender, spender)] = allow
            raise

    def mint(self, minter: str, recipient: str, amount: int) -> TokenMintEvent:
        """Create new units. Only the issuer may mint."""
        self._require_not_frozen()
        self._require_amount(amount)
        if minter != self.issuer:
            raise TokenError(f"{minter} is not the issuer of {self.symbol}")

        new_supply = self._total_supply + amount
        if new_supply > self.max_supply:
            raise TokenError(f"Minting {amount} would exceed max supply")

        self._total_supply = new_supply
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

        event = TokenMintEvent(token_symbol=self.symbol, recipient=recipient, amount=amount)
        self._events.append(event)
        logger.debug(f"Mint: {amount} {self.symbol} -> {recipient}")
        return event

    def _move(self, sender: str, recipient: str, amount: int) -> TokenTransferEvent:
        before = self.snapshot()

        self._balances[sender] = self._balances.get(sender, 0) - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

        event = TokenTransferEvent(
            token_symbol=self.symbol,
            sender=sender,
            recipient=recipient,
            amount=amount,
        )
        self._events.append(event)

        try:
            for hook in list(self._hooks):
                hook(self, event)
        except BaseException:
            # A failing hook fails the transfer as a whole.
            self.restore(before)
            raise

        logger.debug(f"Transfer: {sender} -> {recipient} {amount} {self.symbol}")
        return event

    # ── Freeze / unfreeze ─────────────────────────────────────────────

    def freeze(self) -> None:
        self._frozen = True
        logger.warning(f"Token {self.symbol} FROZEN")

    def unfreeze(self) -> None:
        self._frozen = False
        logger.info(f"Token {self.symbol} unfrozen")

    # ── Snapshot / restore ────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "total_supply": self._total_supply,
            "event_count": len(self._events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._balances = dict(snapshot["balances"])
        self._allowances = dict(snapshot["allowances"])
        self._total_supply = snapshot["total_supply"]
        del self._events[snapshot["event_count"]:]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "decimals": self.decimals,
            "totalSupply": self._total_supply,
            "issuer": self.issuer,
            "frozen": self._frozen,
            "holders": len([b for b in self._balances.values() if b > 0]),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.symbol} supply={self._total_supply}>"


class CurveToken(FungibleToken):
    """A launch asset whose token carries its bonding-curve constants."""

    def __init__(self, name: str, symbol: str, curve_params: CurveParams, **kwargs):
        super().__init__(name, symbol, **kwargs)
        self.curve_params = curve_params

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["curve"] = self.curve_params.to_dict()
        return data


# ══════════════════════════════════════════════════════════════════════
#  TOKEN REGISTRY
# ══════════════════════════════════════════════════════════════════════

class TokenRegistry:
    """
    Handle -> token lookup.

    Asset ids and the quote-asset handle used by the engine are token
    addresses registered here.
    """

    def __init__(self, max_tokens: int = TOKEN_REGISTRY_MAX_TOKENS):
        self._tokens: Dict[str, FungibleToken] = {}
        self._max_tokens = max_tokens

    def deploy(self, token: FungibleToken) -> FungibleToken:
        """
        Register a token under its address.

        Raises TokenError if the address already exists or registry is full.
        """
        if token.address in self._tokens:
            raise TokenError(f"Token {token.address} already registered")
        if len(self._tokens) >= self._max_tokens:
            raise TokenError("Token registry is full")

        self._tokens[token.address] = token
        logger.info(f"Token registered: {token.symbol} at {token.address}")
        return token

    def get(self, address: str) -> Optional[FungibleToken]:
        return self._tokens.get(address)

    def get_or_raise(self, address: str) -> FungibleToken:
        token = self.get(address)
        if token is None:
            raise TokenError(f"Token {address} not found in registry")
        return token

    def exists(self, address: str) -> bool:
        return address in self._tokens

    def list_tokens(self) -> List[str]:
        return list(self._tokens.keys())

    def tokens(self) -> List[FungibleToken]:
        return list(self._tokens.values())

    @property
    def count(self) -> int:
        return len(self._tokens)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenCount": len(self._tokens),
            "maxTokens": self._max_tokens,
            "tokens": {a: t.to_dict() for a, t in self._tokens.items()},
        }

    def __repr__(self) -> str:
        return f"<TokenRegistry tokens={len(self._tokens)}>"
