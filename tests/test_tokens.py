"""
Tests for the in-process token ledger (bondex.tokens)
"""

import pytest

from bondex.tokens import (
    CurveParams,
    CurveToken,
    FungibleToken,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    TokenError,
    TokenFrozenError,
    TokenRegistry,
    TokenTransferEvent,
    token_address,
)

ISSUER = "0xissuer"
ALICE = "0xalice"
BOB = "0xbob"
SPENDER = "0xspender"


def _make_token(supply=1_000_000):
    return FungibleToken("Quote Dollar", "QUSD", total_supply=supply, issuer=ISSUER)


class TestFungibleToken:

    def test_initial_supply_to_issuer(self):
        token = _make_token()
        assert token.total_supply == 1_000_000
        assert token.balance_of(ISSUER) == 1_000_000
        assert token.balance_of(ALICE) == 0

    def test_deterministic_address(self):
        assert _make_token().address == token_address("QUSD", ISSUER)
        assert _make_token().address.startswith("0x")

    def test_transfer(self):
        token = _make_token()
        event = token.transfer(ISSUER, ALICE, 400)
        assert isinstance(event, TokenTransferEvent)
        assert token.balance_of(ISSUER) == 999_600
        assert token.balance_of(ALICE) == 400

    def test_transfer_insufficient(self):
        token = _make_token()
        with pytest.raises(InsufficientBalanceError):
            token.transfer(ALICE, BOB, 1)

    def test_transfer_zero_allowed(self):
        token = _make_token()
        token.transfer(ALICE, BOB, 0)
        assert token.balance_of(BOB) == 0

    def test_negative_amount(self):
        with pytest.raises(TokenError, match="negative"):
            _make_token().transfer(ISSUER, ALICE, -1)

    def test_transfer_from(self):
        token = _make_token()
        token.approve(ISSUER, SPENDER, 500)
        token.transfer_from(SPENDER, ISSUER, BOB, 300)
        assert token.balance_of(BOB) == 300
        assert token.allowance(ISSUER, SPENDER) == 200

    def test_transfer_from_without_allowance(self):
        token = _make_token()
        with pytest.raises(InsufficientAllowanceError):
            token.transfer_from(SPENDER, ISSUER, BOB, 1)

    def test_mint_by_issuer_only(self):
        token = _make_token(0)
        token.mint(ISSUER, ALICE, 50)
        assert token.total_supply == 50
        with pytest.raises(TokenError, match="not the issuer"):
            token.mint(ALICE, ALICE, 50)

    def test_mint_respects_max_supply(self):
        token = FungibleToken("Capped", "CAP", issuer=ISSUER, max_supply=100)
        with pytest.raises(TokenError, match="max supply"):
            token.mint(ISSUER, ALICE, 101)

    def test_freeze(self):
        token = _make_token()
        token.freeze()
        with pytest.raises(TokenFrozenError):
            token.transfer(ISSUER, ALICE, 1)
        token.unfreeze()
        token.transfer(ISSUER, ALICE, 1)

    def test_snapshot_restore(self):
        token = _make_token()
        snap = token.snapshot()
        token.transfer(ISSUER, ALICE, 10)
        token.approve(ALICE, BOB, 5)
        token.restore(snap)
        assert token.balance_of(ALICE) == 0
        assert token.allowance(ALICE, BOB) == 0
        assert token.events == []


class TestTransferHooks:

    def test_hook_sees_moved_balances(self):
        token = _make_token()
        seen = []
        token.add_transfer_hook(lambda t, e: seen.append((e.amount, t.balance_of(e.recipient))))
        token.transfer(ISSUER, ALICE, 7)
        assert seen == [(7, 7)]

    def test_failing_hook_aborts_transfer(self):
        token = _make_token()

        def hook(t, e):
            raise RuntimeError("recipient rejected")

        token.add_transfer_hook(hook)
        with pytest.raises(RuntimeError, match="recipient rejected"):
            token.transfer(ISSUER, ALICE, 7)
        assert token.balance_of(ALICE) == 0
        assert token.balance_of(ISSUER) == 1_000_000

    def test_failing_hook_restores_allowance(self):
        token = _make_token()
        token.approve(ISSUER, SPENDER, 10)

        def hook(t, e):
            raise RuntimeError("nope")

        token.add_transfer_hook(hook)
        with pytest.raises(RuntimeError):
            token.transfer_from(SPENDER, ISSUER, ALICE, 10)
        assert token.allowance(ISSUER, SPENDER) == 10

    def test_remove_hook(self):
        token = _make_token()
        calls = []

        def hook(t, e):
            calls.append(e)

        token.add_transfer_hook(hook)
        token.remove_transfer_hook(hook)
        token.transfer(ISSUER, ALICE, 1)
        assert calls == []


class TestCurveTokenAndRegistry:

    def _make_curve_token(self):
        params = CurveParams(base_price=1_000_000, slope=0, threshold=0, reference_supply=1_000)
        return CurveToken("Launch", "LNCH", params, total_supply=1_000, issuer=ISSUER)

    def test_curve_token_carries_params(self):
        token = self._make_curve_token()
        assert token.curve_params.base_price == 1_000_000
        assert token.to_dict()["curve"]["reference_supply"] == 1_000

    def test_registry(self):
        registry = TokenRegistry()
        token = registry.deploy(self._make_curve_token())
        assert registry.get(token.address) is token
        assert registry.exists(token.address)
        assert registry.list_tokens() == [token.address]
        assert registry.count == 1

    def test_registry_duplicate(self):
        registry = TokenRegistry()
        registry.deploy(self._make_curve_token())
        with pytest.raises(TokenError, match="already registered"):
            registry.deploy(self._make_curve_token())

    def test_registry_missing(self):
        registry = TokenRegistry()
        assert registry.get("0xnone") is None
        with pytest.raises(TokenError, match="not found"):
            registry.get_or_raise("0xnone")

    def test_registry_full(self):
        registry = TokenRegistry(max_tokens=1)
        registry.deploy(_make_token())
        with pytest.raises(TokenError, match="full"):
            registry.deploy(self._make_curve_token())
