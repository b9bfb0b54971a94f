"""
Tests for the pure buy / sell computations (bondex.engine.trade)
"""

import pytest

from bondex.constants import MAX_POOL_SUPPLY
from bondex.engine.ledger import PoolRecord
from bondex.engine.trade import compute_buy, compute_fee, compute_sell
from bondex.exceptions import BoundsError, InsolvencyError, UnsignedArithmeticError


def _pool(supply=1_000_000_000, reserve=1_000_000):
    return PoolRecord("0xasset", "0xcreator", supply, reserve)


class _RecordingPrice:
    """Price lookup that remembers which supplies it was asked about."""

    def __init__(self, price):
        self.price = price
        self.asked = []

    def __call__(self, supply):
        self.asked.append(supply)
        return self.price


class TestComputeFee:

    def test_half_percent(self):
        assert compute_fee(1_000_000) == 5_000
        assert compute_fee(0) == 0

    def test_floor(self):
        assert compute_fee(399) == 1


class TestComputeBuy:

    def test_priced_at_pre_trade_supply(self):
        lookup = _RecordingPrice(2_000_000)
        quote = compute_buy(_pool(), 1_000_000, lookup)
        assert lookup.asked == [1_000_000_000]
        assert quote.token_out == 497_500
        assert quote.supply_after == 1_000_000_000 - 497_500
        assert quote.reserve_after == 1_995_000

    def test_small_input_rounds_to_zero(self):
        quote = compute_buy(_pool(), 1, _RecordingPrice(2_000_000))
        assert quote.fee == 0
        assert quote.token_out == 0
        assert quote.reserve_after == 1_000_001

    def test_zero_rejected(self):
        with pytest.raises(BoundsError):
            compute_buy(_pool(), 0, _RecordingPrice(1))

    def test_drains_more_than_supply(self):
        with pytest.raises(UnsignedArithmeticError):
            compute_buy(_pool(supply=10), 1_000_000, _RecordingPrice(1_000_000))


class TestComputeSell:

    def test_priced_at_post_trade_supply(self):
        lookup = _RecordingPrice(2_000_000)
        quote = compute_sell(_pool(), 497_500, lookup)
        assert lookup.asked == [1_000_000_000 + 497_500]
        assert quote.gross_out == 995_000
        assert quote.fee == 4_975
        assert quote.net_out == 990_025
        assert quote.reserve_after == 1_000_000 - 990_025

    def test_pays_out_whole_reserve(self):
        # gross 1_005_025 -> fee 5_025 -> net exactly the reserve
        quote = compute_sell(_pool(), 1_005_025, _RecordingPrice(1_000_000))
        assert quote.net_out == 1_000_000
        assert quote.reserve_after == 0

    def test_insolvent(self):
        with pytest.raises(InsolvencyError):
            compute_sell(_pool(reserve=10), 1_000, _RecordingPrice(1_000_000))

    def test_supply_bound_checked_before_pricing(self):
        lookup = _RecordingPrice(1_000_000)
        with pytest.raises(BoundsError):
            compute_sell(_pool(supply=MAX_POOL_SUPPLY), 1, lookup)
        assert lookup.asked == []
