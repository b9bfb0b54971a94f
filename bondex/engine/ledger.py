"""
Bondex Pool Ledger

Authoritative mapping from asset identifier to pool state. Records are
immutable; the engine replaces a record through `create` / `apply`, both of
which re-check the pool invariants before touching the map:

    0 <= supply <= MAX_POOL_SUPPLY
    quote_reserve >= 0

A write that would break an invariant raises and leaves the map unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional

from ..constants import MAX_POOL_SUPPLY
from ..exceptions import BoundsError, PoolStateError
from .checked import checked_add, require_uint


@dataclass(frozen=True)
class PoolRecord:
    """
    State of one asset's pool.

    Attributes:
        asset_id: asset identifier (token handle in the registry)
        creator: informational, set once at registration
        supply: asset units held by the engine and available to buyers
        quote_reserve: quote units attributed to this pool's trading (fees excluded)
        exists: true once registered, never reset
    """
    asset_id: str
    creator: str
    supply: int
    quote_reserve: int
    exists: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset_id,
            "creator": self.creator,
            "supply": self.supply,
            "quoteReserve": self.quote_reserve,
            "exists": self.exists,
        }


def _check_invariants(record: PoolRecord) -> None:
    require_uint("supply", record.supply)
    require_uint("quote_reserve", record.quote_reserve)
    if record.supply > MAX_POOL_SUPPLY:
        raise BoundsError(
            f"Pool {record.asset_id} supply {record.supply} exceeds max {MAX_POOL_SUPPLY}"
        )


class PoolLedger:
    """Keyed store of PoolRecords."""

    def __init__(self) -> None:
        self._pools: Dict[str, PoolRecord] = {}

    # -- Read access --------------------------------------------------------

    def find(self, asset_id: str) -> Optional[PoolRecord]:
        return self._pools.get(asset_id)

    def get(self, asset_id: str) -> PoolRecord:
        record = self._pools.get(asset_id)
        if record is None:
            raise PoolStateError(f"Pool for asset {asset_id} not found")
        return record

    def exists(self, asset_id: str) -> bool:
        return asset_id in self._pools

    def asset_ids(self) -> List[str]:
        return sorted(self._pools)

    def total_quote_reserve(self) -> int:
        total = 0
        for record in self._pools.values():
            total = checked_add(total, record.quote_reserve)
        return total

    @property
    def pool_count(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[PoolRecord]:
        for asset_id in sorted(self._pools):
            yield self._pools[asset_id]

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._pools

    # -- Guarded writes (engine only) ---------------------------------------

    def create(self, asset_id: str, creator: str, supply: int, quote_reserve: int) -> PoolRecord:
        if asset_id in self._pools:
            raise PoolStateError(f"Pool for asset {asset_id} already exists")
        record = PoolRecord(
            asset_id=asset_id,
            creator=creator,
            supply=supply,
            quote_reserve=quote_reserve,
        )
        _check_invariants(record)
        self._pools[asset_id] = record
        return record

    def apply(self, asset_id: str, *, supply: int, quote_reserve: int) -> PoolRecord:
        current = self.get(asset_id)
        record = replace(current, supply=supply, quote_reserve=quote_reserve)
        _check_invariants(record)
        self._pools[asset_id] = record
        return record

    # -- Snapshot / restore (for call rollback) -----------------------------

    def snapshot(self) -> Dict[str, PoolRecord]:
        return dict(self._pools)

    def restore(self, snapshot: Dict[str, PoolRecord]) -> None:
        self._pools = dict(snapshot)

    def __repr__(self) -> str:
        return f"<PoolLedger pools={len(self._pools)}>"
