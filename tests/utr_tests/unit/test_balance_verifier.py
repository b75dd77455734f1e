"""
Unit tests for output balance snapshots and minimum-increase checks.
"""

import pytest

from utr.core.router import (
    Action,
    ActionKind,
    AssetAdapter,
    AssetRef,
    BalanceVerifier,
    ExecutionContext,
    TokenSpec,
)
from utr.core.router_exceptions import InsufficientOutputAmountError

from router_helpers import ALICE, BOB, ROUTER, TOKEN_A


@pytest.fixture
def verifier(world):
    return BalanceVerifier(AssetAdapter(world, ROUTER))


def output(*tokens):
    return Action(ActionKind.OUTPUT_MANDATORY, tokens=tokens)


def test_snapshot_skips_zero_amount_tokens(verifier):
    action = output(
        TokenSpec(AssetRef.fungible(TOKEN_A), 0, recipient=BOB),
        TokenSpec(AssetRef.native(), 5, recipient=BOB),
    )
    context = ExecutionContext()
    recorded = verifier.snapshot(4, action, context)
    assert recorded == {(4, 1): 500}
    assert context.pre_balances == {(4, 1): 500}


def test_verify_passes_when_increase_meets_minimum(verifier, world, token_a):
    action = output(TokenSpec(AssetRef.fungible(TOKEN_A), 100, recipient=BOB))
    context = ExecutionContext()
    verifier.snapshot(0, action, context)
    token_a.transfer(ALICE, BOB, 100)
    verifier.verify(0, action, context)


def test_verify_measures_delta_not_absolute_balance(verifier, token_a):
    token_a.transfer(ALICE, BOB, 500)
    action = output(TokenSpec(AssetRef.fungible(TOKEN_A), 100, recipient=BOB))
    context = ExecutionContext()
    verifier.snapshot(0, action, context)
    token_a.transfer(ALICE, BOB, 99)

    with pytest.raises(InsufficientOutputAmountError) as exc_info:
        verifier.verify(0, action, context)
    assert exc_info.value.reason == "INSUFFICIENT_OUTPUT_AMOUNT"
    assert exc_info.value.details["before"] == 500
    assert exc_info.value.details["after"] == 599


def test_verify_zero_amount_tokens_always_pass(verifier, token_a):
    action = output(TokenSpec(AssetRef.fungible(TOKEN_A), 0, recipient=BOB))
    context = ExecutionContext()
    verifier.snapshot(0, action, context)
    verifier.verify(0, action, context)


def test_decrease_fails_verification(verifier, world):
    action = output(TokenSpec(AssetRef.native(), 1, recipient=BOB))
    context = ExecutionContext()
    verifier.snapshot(0, action, context)
    world.transfer_native(BOB, ALICE, 10)

    with pytest.raises(InsufficientOutputAmountError):
        verifier.verify(0, action, context)
