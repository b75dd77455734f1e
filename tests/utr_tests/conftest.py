"""
Fixtures for router tests: a funded world with one contract of each asset
standard, plus small application contracts the router can call.
"""

import sys
from pathlib import Path

import pytest

# Make the shared test helpers importable from every test package
sys.path.insert(0, str(Path(__file__).parent))

from utr.core.router import UniversalTokenRouter

from router_helpers import (
    APP,
    BOB,
    COLLECTION,
    MULTI,
    POOL,
    ROUTER,
    TOKEN_A,
    TOKEN_B,
    RecorderApp,
    SwapPool,
    build_world,
)


@pytest.fixture
def world():
    """World with ALICE holding native coin, TKA, NFTs 1-3 and 50 of multi-token 7."""
    return build_world()


@pytest.fixture
def router(world):
    return UniversalTokenRouter(world, ROUTER)


@pytest.fixture
def token_a(world):
    return world.get_contract(TOKEN_A)


@pytest.fixture
def token_b(world):
    return world.get_contract(TOKEN_B)


@pytest.fixture
def collection(world):
    return world.get_contract(COLLECTION)


@pytest.fixture
def multi(world):
    return world.get_contract(MULTI)


@pytest.fixture
def pool(world, token_b):
    """Pool paying 95 TKB per 100 TKA, seeded with BOB's TKB."""
    deployed = world.deploy(SwapPool(POOL, TOKEN_A, TOKEN_B, rate_num=95, rate_den=100))
    token_b.transfer(BOB, POOL, 1_000)
    return deployed


@pytest.fixture
def app(world):
    return world.deploy(RecorderApp(APP))
