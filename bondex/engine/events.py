"""
Bondex Event Log

Append-only, typed notifications for off-core observers. The engine never
reads them back.

Events raised while a call executes are buffered; they are appended (and
sequence-numbered) only when the call commits, and dropped when it rolls
back, so the log only ever describes transitions that actually happened.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PoolRegistered:
    """Emitted when the factory registers a new pool."""
    asset: str
    creator: str
    initial_supply: int
    initial_quote: int
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "PoolRegistered",
            "sequence": self.sequence,
            "asset": self.asset,
            "creator": self.creator,
            "initialSupply": self.initial_supply,
            "initialQuote": self.initial_quote,
        }


@dataclass(frozen=True)
class Bought:
    """Emitted on every successful buy."""
    buyer: str
    asset: str
    quote_in: int
    token_out: int
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Bought",
            "sequence": self.sequence,
            "buyer": self.buyer,
            "asset": self.asset,
            "quoteIn": self.quote_in,
            "tokenOut": self.token_out,
        }


@dataclass(frozen=True)
class Sold:
    """Emitted on every successful sell."""
    seller: str
    asset: str
    token_in: int
    quote_out: int
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Sold",
            "sequence": self.sequence,
            "seller": self.seller,
            "asset": self.asset,
            "tokenIn": self.token_in,
            "quoteOut": self.quote_out,
        }


@dataclass(frozen=True)
class RouterChanged:
    """Emitted when the owner replaces the router."""
    old: Optional[str]
    new: str
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "RouterChanged", "sequence": self.sequence, "old": self.old, "new": self.new}


@dataclass(frozen=True)
class FeeCollectorChanged:
    """Emitted when the owner replaces the fee collector."""
    old: Optional[str]
    new: str
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "FeeCollectorChanged", "sequence": self.sequence, "old": self.old, "new": self.new}


@dataclass(frozen=True)
class FeesWithdrawn:
    collector: str
    amount: int
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "FeesWithdrawn",
            "sequence": self.sequence,
            "collector": self.collector,
            "amount": self.amount,
        }


EngineEvent = Union[PoolRegistered, Bought, Sold, RouterChanged, FeeCollectorChanged, FeesWithdrawn]
EventObserver = Callable[[EngineEvent], None]


# ══════════════════════════════════════════════════════════════════════
#  EVENT LOG
# ══════════════════════════════════════════════════════════════════════

class EventLog:
    """
    Append-only event store with a per-call pending buffer.

    Observers registered with `subscribe` are called, in registration order,
    for every committed event.

    Dispatch is not reentrant. An observer may call back into the engine, but
    events committed by that nested call are queued and delivered after the
    current event has reached every observer, so each observer sees events
    one at a time and in sequence order.
    """

    def __init__(self) -> None:
        self._events: List[EngineEvent] = []
        self._pending: List[EngineEvent] = []
        self._observers: List[EventObserver] = []
        self._outbox: Deque[EngineEvent] = deque()
        self._dispatching: bool = False

    # -- Emission -----------------------------------------------------------

    def emit(self, event: EngineEvent) -> None:
        self._pending.append(event)

    def commit(self) -> List[EngineEvent]:
        """Append buffered events to the log and notify observers."""
        committed = []
        for event in self._pending:
            stamped = replace(event, sequence=len(self._events))
            self._events.append(stamped)
            committed.append(stamped)
        self._pending = []

        self._outbox.extend(committed)
        self._dispatch()
        return committed

    def discard(self) -> None:
        self._pending = []

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # -- Observers ----------------------------------------------------------

    def subscribe(self, observer: EventObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: EventObserver) -> None:
        self._observers = [o for o in self._observers if o != observer]

    def _dispatch(self) -> None:
        # A commit made from inside an observer only queues; the outermost
        # dispatch drains the queue.
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._outbox:
                self._notify(self._outbox.popleft())
        finally:
            self._dispatching = False

    def _notify(self, event: EngineEvent) -> None:
        # The transition is already committed; an observer cannot undo it.
        for observer in self._observers:
            try:
                observer(event)
            except Exception as e:
                logger.error(
                    "Event observer %r failed on %s #%d: %s",
                    observer, type(event).__name__, event.sequence, e,
                )

    # -- Read access --------------------------------------------------------

    @property
    def events(self) -> List[EngineEvent]:
        return list(self._events)

    def of_type(self, event_type: type) -> List[EngineEvent]:
        return [e for e in self._events if isinstance(e, event_type)]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"<EventLog events={len(self._events)} pending={len(self._pending)}>"
