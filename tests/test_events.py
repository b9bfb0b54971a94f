"""
Tests for the engine event log (bondex.engine.events)
"""

import dataclasses
import logging

import pytest

from bondex.engine import (
    Bought,
    EventLog,
    FeeCollectorChanged,
    FeesWithdrawn,
    PoolRegistered,
    RouterChanged,
    Sold,
)

from engine_world import ALICE, COLLECTOR, CREATOR, ROUTER, World

ASSET = "0xasset"


class TestEventLog:

    def test_pending_until_commit(self):
        log = EventLog()
        log.emit(Bought(buyer=ROUTER, asset=ASSET, quote_in=10, token_out=5))
        assert len(log) == 0
        assert log.pending_count == 1
        committed = log.commit()
        assert len(log) == 1
        assert log.pending_count == 0
        assert committed[0].sequence == 0

    def test_discard(self):
        log = EventLog()
        log.emit(Sold(seller=ROUTER, asset=ASSET, token_in=1, quote_out=1))
        log.discard()
        assert log.commit() == []
        assert len(log) == 0

    def test_sequence_is_monotonic(self):
        log = EventLog()
        for amount in range(3):
            log.emit(FeesWithdrawn(collector=COLLECTOR, amount=amount))
            log.commit()
        assert [e.sequence for e in log.events] == [0, 1, 2]

    def test_events_are_immutable(self):
        event = RouterChanged(old=None, new=ROUTER)
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.new = ALICE

    def test_of_type(self):
        log = EventLog()
        log.emit(RouterChanged(old=None, new=ROUTER))
        log.emit(FeeCollectorChanged(old=None, new=COLLECTOR))
        log.commit()
        assert len(log.of_type(RouterChanged)) == 1
        assert len(log.of_type(Bought)) == 0

    def test_to_dicts(self):
        log = EventLog()
        log.emit(PoolRegistered(asset=ASSET, creator=CREATOR, initial_supply=100, initial_quote=7))
        log.commit()
        assert log.to_dicts() == [{
            "event": "PoolRegistered",
            "sequence": 0,
            "asset": ASSET,
            "creator": CREATOR,
            "initialSupply": 100,
            "initialQuote": 7,
        }]


class TestObservers:

    def test_observer_notified_after_commit(self):
        log = EventLog()
        seen = []
        log.subscribe(seen.append)
        log.emit(FeesWithdrawn(collector=COLLECTOR, amount=3))
        assert seen == []
        log.commit()
        assert [e.amount for e in seen] == [3]

    def test_unsubscribe(self):
        log = EventLog()
        seen = []
        log.subscribe(seen.append)
        log.unsubscribe(seen.append)
        log.emit(FeesWithdrawn(collector=COLLECTOR, amount=3))
        log.commit()
        assert seen == []

    def test_failing_observer_is_logged(self, caplog):
        log = EventLog()
        seen = []

        def broken(event):
            raise RuntimeError("observer down")

        log.subscribe(broken)
        log.subscribe(seen.append)
        log.emit(FeesWithdrawn(collector=COLLECTOR, amount=3))
        with caplog.at_level(logging.ERROR, logger="bondex.engine.events"):
            log.commit()

        assert len(log) == 1
        assert len(seen) == 1
        assert "observer down" in caplog.text

    def test_commit_from_observer_is_queued(self):
        log = EventLog()
        delivered = []
        depth = [0]

        def chain(event):
            depth[0] += 1
            delivered.append((event.amount, depth[0]))
            if event.amount < 3:
                log.emit(FeesWithdrawn(collector=COLLECTOR, amount=event.amount + 1))
                log.commit()
            depth[0] -= 1

        log.subscribe(chain)
        log.emit(FeesWithdrawn(collector=COLLECTOR, amount=1))
        log.commit()

        assert delivered == [(1, 1), (2, 1), (3, 1)]
        assert [e.sequence for e in log.events] == [0, 1, 2]

    def test_later_observers_see_event_before_nested_ones(self):
        log = EventLog()
        order = []

        def first(event):
            order.append(("first", event.amount))
            if event.amount == 1:
                log.emit(FeesWithdrawn(collector=COLLECTOR, amount=2))
                log.commit()

        log.subscribe(first)
        log.subscribe(lambda event: order.append(("second", event.amount)))
        log.emit(FeesWithdrawn(collector=COLLECTOR, amount=1))
        log.commit()

        assert order == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]

    def test_observer_may_call_engine(self, caplog):
        world = World()
        world.register()
        fired = []
        trades = []

        def follow_up(event):
            if isinstance(event, Bought) and not fired:
                fired.append(event.sequence)
                trades.append(world.engine.buy(ROUTER, world.asset_id, 1_000, ALICE))

        world.engine.events.subscribe(follow_up)
        with caplog.at_level(logging.ERROR, logger="bondex.engine.events"):
            world.engine.buy(ROUTER, world.asset_id, 1_000_000, ALICE)

        assert len(trades) == 1
        assert len(world.engine.events.of_type(Bought)) == 2
        assert "failed" not in caplog.text

    def test_nested_trade_is_not_renotified_recursively(self):
        world = World()
        world.register()
        seen = []
        active = []

        def follow_up(event):
            assert not active, "observer re-entered"
            active.append(event)
            seen.append(event.sequence)
            try:
                if isinstance(event, Bought) and len(seen) < 3:
                    world.engine.buy(ROUTER, world.asset_id, 1_000, ALICE)
            finally:
                active.pop()

        world.engine.events.subscribe(follow_up)
        world.engine.buy(ROUTER, world.asset_id, 1_000_000, ALICE)

        bought = world.engine.events.of_type(Bought)
        assert len(bought) == 3
        assert seen == [e.sequence for e in bought]
