"""
All-or-nothing call execution and the non-reentrancy lock.

Every mutating entry point of the engine runs inside `atomic_call`:

  1. the reentrancy lock is taken; a nested entry fails immediately
  2. every participant (ledger, access gate, tokens) is checkpointed
  3. the operation runs
  4. on any exception all participants are restored, buffered events are
     dropped and the exception propagates unchanged
  5. on success the lock is released and buffered events are committed
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Protocol, Tuple

from ..exceptions import ReentrancyError
from ..logger import get_logger
from .events import EventLog

logger = get_logger(__name__)


class Snapshottable(Protocol):
    def snapshot(self) -> Any: ...
    def restore(self, snapshot: Any) -> None: ...


class ReentrancyGuard:
    """Boolean in-call flag shared by all guarded entry points."""

    def __init__(self) -> None:
        self._locked: bool = False
        self._entry: str = ""

    @property
    def locked(self) -> bool:
        return self._locked

    def acquire(self, entry: str) -> None:
        if self._locked:
            raise ReentrancyError(
                f"Reentrancy detected: {entry} called while {self._entry} is executing"
            )
        self._locked = True
        self._entry = entry

    def release(self) -> None:
        self._locked = False
        self._entry = ""


@contextmanager
def atomic_call(
    entry: str,
    guard: ReentrancyGuard,
    events: EventLog,
    participants: Iterable[Snapshottable],
) -> Iterator[None]:
    guard.acquire(entry)
    try:
        checkpoint: List[Tuple[Snapshottable, Any]] = [(p, p.snapshot()) for p in participants]
        try:
            yield
        except BaseException as e:
            for participant, snapshot in reversed(checkpoint):
                participant.restore(snapshot)
            events.discard()
            logger.warning("%s rejected and rolled back: %s: %s", entry, type(e).__name__, e)
            raise
    finally:
        guard.release()
    events.commit()
