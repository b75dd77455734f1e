"""
Unit tests for per-class balance queries and transfers.
"""

from types import SimpleNamespace

import pytest

from utr.core.router import AssetAdapter, AssetRef, ID_721_ALL
from utr.core.router_exceptions import InvalidAssetClassError, VMExecutionError

from router_helpers import ALICE, BOB, COLLECTION, MULTI, ROUTER, TOKEN_A


@pytest.fixture
def adapter(world):
    return AssetAdapter(world, ROUTER)


class TestBalanceOf:
    def test_native(self, adapter):
        assert adapter.balance_of(AssetRef.native(), ALICE) == 10_000

    def test_fungible(self, adapter):
        assert adapter.balance_of(AssetRef.fungible(TOKEN_A), ALICE) == 1_000
        assert adapter.balance_of(AssetRef.fungible(TOKEN_A), BOB) == 0

    def test_non_fungible_all_counts_units(self, adapter):
        assert adapter.balance_of(AssetRef.non_fungible(COLLECTION), ALICE) == 3
        assert adapter.balance_of(AssetRef.non_fungible(COLLECTION, ID_721_ALL), BOB) == 0

    def test_non_fungible_specific_id_is_ownership_flag(self, adapter):
        assert adapter.balance_of(AssetRef.non_fungible(COLLECTION, 2), ALICE) == 1
        assert adapter.balance_of(AssetRef.non_fungible(COLLECTION, 2), BOB) == 0

    def test_non_fungible_unminted_id_propagates(self, adapter):
        with pytest.raises(VMExecutionError, match="does not exist"):
            adapter.balance_of(AssetRef.non_fungible(COLLECTION, 99), ALICE)

    def test_semi_fungible(self, adapter):
        assert adapter.balance_of(AssetRef.semi_fungible(MULTI, 7), ALICE) == 50
        assert adapter.balance_of(AssetRef.semi_fungible(MULTI, 8), ALICE) == 0

    def test_unknown_class_raises(self, adapter):
        bogus = SimpleNamespace(asset_class="ERC777", contract=TOKEN_A, id=0)
        with pytest.raises(InvalidAssetClassError) as exc_info:
            adapter.balance_of(bogus, ALICE)
        assert exc_info.value.reason == "INVALID_ASSET_CLASS"

    def test_balance_query_has_no_side_effects(self, adapter, world, token_a):
        before = world.snapshot()
        adapter.balance_of(AssetRef.fungible(TOKEN_A), ALICE)
        assert world.native_balances == before["native_balances"]
        assert token_a.snapshot() == before["contracts"][TOKEN_A][1]


class TestTransfer:
    def test_native_pays_from_router(self, adapter, world):
        world.credit_native(ROUTER, 100)
        adapter.transfer(AssetRef.native(), ALICE, BOB, 40)
        assert world.native_balance(ROUTER) == 60
        assert world.native_balance(BOB) == 540
        assert world.native_balance(ALICE) == 10_000

    def test_fungible_uses_router_allowance(self, adapter, token_a):
        adapter.transfer(AssetRef.fungible(TOKEN_A), ALICE, BOB, 250)
        assert token_a.balance_of(ALICE) == 750
        assert token_a.balance_of(BOB) == 250
        assert token_a.allowance(ALICE, ROUTER) == 750

    def test_fungible_without_allowance_fails(self, adapter, token_a):
        token_a.approve(ALICE, ROUTER, 0)
        with pytest.raises(VMExecutionError, match="insufficient allowance"):
            adapter.transfer(AssetRef.fungible(TOKEN_A), ALICE, BOB, 1)
        assert token_a.balance_of(ALICE) == 1_000

    def test_non_fungible_moves_the_given_id(self, adapter, collection):
        adapter.transfer(AssetRef.non_fungible(COLLECTION, 3), ALICE, BOB, 1)
        assert collection.owner_of(3) == BOB
        assert collection.balance_of(ALICE) == 2

    def test_semi_fungible(self, adapter, multi):
        adapter.transfer(AssetRef.semi_fungible(MULTI, 7), ALICE, BOB, 20)
        assert multi.balance_of(ALICE, 7) == 30
        assert multi.balance_of(BOB, 7) == 20

    def test_unknown_class_raises(self, adapter):
        bogus = SimpleNamespace(asset_class="ERC777", contract=TOKEN_A, id=0)
        with pytest.raises(InvalidAssetClassError):
            adapter.transfer(bogus, ALICE, BOB, 1)

    def test_transfer_logs_structured_event(self, adapter, caplog):
        adapter.transfer(AssetRef.fungible(TOKEN_A), ALICE, BOB, 1)
        events = [getattr(r, "event", None) for r in caplog.records]
        assert "router.transfer" in events
