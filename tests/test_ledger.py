"""
Tests for the pool ledger (bondex.engine.ledger)
"""

import dataclasses

import pytest

from bondex.constants import MAX_POOL_SUPPLY
from bondex.engine.ledger import PoolLedger, PoolRecord
from bondex.exceptions import BoundsError, PoolStateError, UnsignedArithmeticError

ASSET_A = "0xasset_a"
ASSET_B = "0xasset_b"
CREATOR = "0xcreator"


class TestPoolLedger:

    def _make_ledger(self):
        ledger = PoolLedger()
        ledger.create(ASSET_A, CREATOR, 1_000, 500)
        return ledger

    def test_create_and_get(self):
        ledger = self._make_ledger()
        record = ledger.get(ASSET_A)
        assert record == PoolRecord(ASSET_A, CREATOR, 1_000, 500, True)
        assert ledger.exists(ASSET_A)
        assert ASSET_A in ledger
        assert ledger.pool_count == 1

    def test_get_missing(self):
        ledger = PoolLedger()
        assert ledger.find(ASSET_A) is None
        with pytest.raises(PoolStateError, match="not found"):
            ledger.get(ASSET_A)

    def test_create_twice(self):
        ledger = self._make_ledger()
        with pytest.raises(PoolStateError, match="already exists"):
            ledger.create(ASSET_A, CREATOR, 1, 1)
        assert ledger.get(ASSET_A).supply == 1_000

    def test_create_at_max_supply(self):
        ledger = PoolLedger()
        ledger.create(ASSET_A, CREATOR, MAX_POOL_SUPPLY, 1)
        assert ledger.get(ASSET_A).supply == MAX_POOL_SUPPLY

    def test_create_above_max_supply(self):
        ledger = PoolLedger()
        with pytest.raises(BoundsError):
            ledger.create(ASSET_A, CREATOR, MAX_POOL_SUPPLY + 1, 1)
        assert not ledger.exists(ASSET_A)

    def test_apply(self):
        ledger = self._make_ledger()
        updated = ledger.apply(ASSET_A, supply=900, quote_reserve=700)
        assert updated.supply == 900
        assert updated.quote_reserve == 700
        assert updated.creator == CREATOR

    def test_apply_rejects_negative_reserve(self):
        ledger = self._make_ledger()
        with pytest.raises(UnsignedArithmeticError):
            ledger.apply(ASSET_A, supply=900, quote_reserve=-1)
        assert ledger.get(ASSET_A).quote_reserve == 500

    def test_apply_rejects_supply_above_max(self):
        ledger = self._make_ledger()
        with pytest.raises(BoundsError):
            ledger.apply(ASSET_A, supply=MAX_POOL_SUPPLY + 1, quote_reserve=500)
        assert ledger.get(ASSET_A).supply == 1_000

    def test_records_are_immutable(self):
        record = self._make_ledger().get(ASSET_A)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.supply = 0

    def test_total_quote_reserve_and_iteration(self):
        ledger = self._make_ledger()
        ledger.create(ASSET_B, CREATOR, 10, 250)
        assert ledger.total_quote_reserve() == 750
        assert [r.asset_id for r in ledger] == [ASSET_A, ASSET_B]
        assert ledger.asset_ids() == [ASSET_A, ASSET_B]

    def test_snapshot_restore(self):
        ledger = self._make_ledger()
        snap = ledger.snapshot()
        ledger.apply(ASSET_A, supply=1, quote_reserve=1)
        ledger.create(ASSET_B, CREATOR, 10, 10)
        ledger.restore(snap)
        assert ledger.get(ASSET_A).supply == 1_000
        assert not ledger.exists(ASSET_B)

    def test_to_dict(self):
        data = self._make_ledger().get(ASSET_A).to_dict()
        assert data == {
            "asset": ASSET_A,
            "creator": CREATOR,
            "supply": 1_000,
            "quoteReserve": 500,
            "exists": True,
        }
