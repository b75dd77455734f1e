"""
Application contracts, addresses and calldata helpers shared by router tests.
"""

from utr.core.abi import (
    encode_call,
    encode_uint256,
    function_selector,
)
from utr.core.contracts import Contract, ERC20Token, ERC721Token, ERC1155Token
from utr.core.router import CALL_RESULT_PLACEHOLDER
from utr.core.router_exceptions import VMExecutionError
from utr.core.state import WorldState

ROUTER = "0x8bbbd2a7bc4ef0de7a5e1a9e6b8b3dab5b0c1d2e"
DEPLOYER = "0x000000000000000000000000000000000000dead"
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c4" * 20

TOKEN_A = "0x" + "0a" * 20
TOKEN_B = "0x" + "0b" * 20
COLLECTION = "0x" + "72" * 20
MULTI = "0x" + "15" * 20
POOL = "0x" + "9e" * 20
APP = "0x" + "ab" * 20
REENTRANT = "0x" + "ee" * 20


class SwapPool(Contract):
    """
    Fixed-rate pool: tokens sent in ahead of ``swap`` are paid out as
    ``amount_in * rate_num // rate_den`` of the output token.
    """

    LABEL = "SwapPool"
    ABI_METHODS = {
        "quote(uint256)": "_abi_quote",
        "swap(uint256,address)": "_abi_swap",
    }

    def __init__(self, address, token_in, token_out, rate_num=1, rate_den=1):
        self.address = address
        self.token_in = token_in
        self.token_out = token_out
        self.rate_num = rate_num
        self.rate_den = rate_den
        self.reserve_in = 0
        self.swaps = 0

    def amount_in_for(self, amount_out):
        return -(-amount_out * self.rate_den // self.rate_num)

    def _abi_quote(self, state, sender, value, amount_out):
        return encode_uint256(self.amount_in_for(amount_out))

    def _abi_swap(self, state, sender, value, amount_in, to):
        token_in = state.require_contract(self.token_in, ERC20Token)
        token_out = state.require_contract(self.token_out, ERC20Token)
        received = token_in.balance_of(self.address) - self.reserve_in
        if received < amount_in:
            raise VMExecutionError("SwapPool: insufficient input received")
        self.reserve_in += amount_in
        self.swaps += 1
        amount_out = amount_in * self.rate_num // self.rate_den
        token_out.transfer(self.address, to, amount_out)
        return encode_uint256(amount_out)


class RecorderApp(Contract):
    """Payable application contract recording what the router sends it."""

    LABEL = "RecorderApp"
    PAYABLE = True
    ABI_METHODS = {
        "record(bytes)": "_abi_record",
        "echo(bytes)": "_abi_echo",
        "ping()": "_abi_ping",
        "fail()": "_abi_fail",
        "crash()": "_abi_crash",
        "misconfigured()": "_abi_misconfigured",
        "writeThenFail(address,uint256)": "_abi_write_then_fail",
    }

    def __init__(self, address):
        self.address = address
        self.records = []
        self.values = []
        self.pings = 0
        self._oracle = None

    def _abi_record(self, state, sender, value, data):
        self.records.append(data)
        self.values.append(value)
        return b""

    def _abi_echo(self, state, sender, value, data):
        return data

    def _abi_ping(self, state, sender, value):
        self.pings += 1
        self.values.append(value)
        return b""

    def _abi_fail(self, state, sender, value):
        self.pings += 1
        raise VMExecutionError("RecorderApp: forced failure")

    def _abi_crash(self, state, sender, value):
        # A plain Python error rather than a contract revert
        self.pings += 1
        raise RuntimeError("RecorderApp: crashed")

    def _abi_misconfigured(self, state, sender, value):
        self.pings += 1
        return self._oracle.latest()

    def _abi_write_then_fail(self, state, sender, value, token, amount):
        # Writes to token storage, then fails so the write must be undone
        state.require_contract(token, ERC20Token).balances[self.address] = amount
        raise VMExecutionError("RecorderApp: rejected after write")


class ReentrantApp(Contract):
    """Calls back into the router with a preconfigured action list."""

    LABEL = "ReentrantApp"
    ABI_METHODS = {"reenter()": "_abi_reenter"}

    def __init__(self, address, router, actions=()):
        self.address = address
        self.reentries = 0
        self._router = router
        self._actions = tuple(actions)

    def _abi_reenter(self, state, sender, value):
        self.reentries += 1
        receipt = self._router.execute(self.address, self._actions)
        return encode_uint256(receipt.actions_executed)


def placeholder_payload(signature):
    """Calldata for a single-``bytes`` function whose argument is the placeholder."""
    return function_selector(signature) + encode_uint256(32) + CALL_RESULT_PLACEHOLDER


def call(signature, *args):
    return encode_call(signature, list(args))


def build_world():
    """World with ALICE holding native coin, TKA, NFTs 1-3 and 50 of multi-token 7."""
    state = WorldState()
    state.credit_native(ALICE, 10_000)
    state.credit_native(BOB, 500)

    token_a = state.deploy(ERC20Token(name="Token A", symbol="TKA", address=TOKEN_A, owner=DEPLOYER))
    token_b = state.deploy(ERC20Token(name="Token B", symbol="TKB", address=TOKEN_B, owner=DEPLOYER))
    token_a.mint(DEPLOYER, ALICE, 1_000)
    token_b.mint(DEPLOYER, BOB, 1_000)
    token_a.approve(ALICE, ROUTER, 1_000)

    collection = state.deploy(ERC721Token(name="Collection", symbol="COL", address=COLLECTION, owner=DEPLOYER))
    for token_id in (1, 2, 3):
        collection.mint(DEPLOYER, ALICE, token_id)
    collection.set_approval_for_all(ALICE, ROUTER, True)

    multi = state.deploy(ERC1155Token(uri="ipfs://multi/{id}", address=MULTI, owner=DEPLOYER))
    multi.mint(DEPLOYER, ALICE, 7, 50)
    multi.set_approval_for_all(ALICE, ROUTER, True)
    return state


def world_state(state):
    """Comparable copy of every native balance and contract storage."""
    return (
        dict(state.native_balances),
        {address: contract.snapshot() for address, contract in state.contracts.items()},
    )
