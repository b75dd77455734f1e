"""
In-memory host environment for the router.

WorldState plays the part of the chain the router runs on: it holds native
balances and deployed contracts, performs external calls, and provides the
all-or-nothing transaction primitive the router relies on. Snapshots follow
the same snapshot()/restore() contract used for chain reorganisation
rollback: a deep copy is taken up front and written back on failure.
"""

from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

from .abi import normalize_address
from .contracts.base import Contract
from .router_exceptions import InsufficientBalanceError, VMExecutionError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Contract)


class WorldState:
    """Native balances, contract registry and transactional execution."""

    def __init__(self) -> None:
        self.native_balances: Dict[str, int] = {}
        self.contracts: Dict[str, Contract] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._static_depth = 0

    # ==================== Contracts ====================

    def deploy(self, contract: C) -> C:
        """Register ``contract`` at its address and return it."""
        address = normalize_address(contract.address)
        with self._lock:
            if address in self.contracts:
                raise VMExecutionError(f"Contract already deployed at {address}")
            contract.address = address
            self.contracts[address] = contract
        logger.debug(
            "Contract deployed",
            extra={
                "event": "state.deploy",
                "address": address,
                "contract_type": type(contract).__name__,
            },
        )
        return contract

    def get_contract(self, address: str) -> Optional[Contract]:
        return self.contracts.get(normalize_address(address))

    def require_contract(self, address: str, kind: Type[C]) -> C:
        """Return the contract at ``address``, which must be a ``kind``."""
        contract = self.get_contract(address)
        if contract is None:
            raise VMExecutionError(f"No contract deployed at {address}")
        if not isinstance(contract, kind):
            raise VMExecutionError(
                f"Contract at {address} is not {kind.__name__}"
            )
        return contract

    # ==================== Native asset ====================

    def native_balance(self, address: str) -> int:
        return self.native_balances.get(normalize_address(address), 0)

    def credit_native(self, address: str, amount: int) -> None:
        """Create native balance out of thin air (genesis funding)."""
        if amount < 0:
            raise ValueError("Credit amount cannot be negative")
        address = normalize_address(address)
        self.native_balances[address] = self.native_balances.get(address, 0) + amount

    def transfer_native(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move native balance between two accounts.

        Raises:
            InsufficientBalanceError: If ``sender`` holds less than ``amount``
        """
        if amount < 0:
            raise ValueError("Transfer amount cannot be negative")
        if amount == 0:
            return
        if self._static_depth:
            raise VMExecutionError("Native transfer attempted during a static call")
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        balance = self.native_balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalanceError(
                f"Insufficient native balance ({amount} > {balance})",
                details={"account": sender, "required": amount, "available": balance},
            )
        self.native_balances[sender] = balance - amount
        self.native_balances[recipient] = self.native_balances.get(recipient, 0) + amount

    # ==================== Transactions ====================

    def snapshot(self) -> Dict[str, Any]:
        """
        Capture native balances, the contract registry and every contract's
        storage.
        """
        with self._lock:
            return {
                "native_balances": copy.deepcopy(self.native_balances),
                "contracts": {
                    address: (contract, contract.snapshot())
                    for address, contract in self.contracts.items()
                },
            }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """
        Restore state captured by snapshot(). Contracts deployed after the
        snapshot are dropped; surviving contract objects keep their identity.
        """
        with self._lock:
            self.native_balances = copy.deepcopy(snapshot["native_balances"])
            contracts: Dict[str, Contract] = {}
            for address, (contract, storage) in snapshot["contracts"].items():
                contract.restore(storage)
                contracts[address] = contract
            self.contracts = contracts

    @contextmanager
    def transaction(self) -> Iterator["WorldState"]:
        """
        Run the body atomically: if it raises, every native balance and
        contract storage change made inside is undone and the error re-raised.
        Nests; an inner failure only unwinds the inner block.
        """
        with self._lock:
            saved = self.snapshot()
            self._depth += 1
            try:
                yield self
            except BaseException:
                self.restore(saved)
                logger.debug(
                    "Transaction rolled back",
                    extra={"event": "state.rollback", "depth": self._depth},
                )
                raise
            finally:
                self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # ==================== Calls ====================

    def call(self, sender: str, target: str, value: int = 0, data: bytes = b"") -> bytes:
        """
        Perform an external call from ``sender`` to ``target``.

        ``value`` is moved to ``target`` first; if a contract lives at
        ``target`` its handle_call() runs next. The call is its own savepoint:
        on failure the value transfer and every write made by the callee are
        undone before the error propagates. Calls to addresses without a
        contract only move value and return empty bytes.
        """
        sender = normalize_address(sender)
        target = normalize_address(target)
        with self.transaction():
            self.transfer_native(sender, target, value)
            contract = self.contracts.get(target)
            if contract is None:
                return b""
            result = contract.handle_call(self, sender, value, bytes(data))
            return bytes(result or b"")

    def static_call(self, sender: str, target: str, data: bytes = b"") -> bytes:
        """
        Perform a read-only call from ``sender`` to ``target``.

        Unlike call(), no snapshot is taken, so the cost does not grow with
        the size of the world. Native transfers are refused while a static
        call is running; contract handlers reached this way must only read
        storage (``balanceOf``, ``ownerOf`` and similar views).
        """
        sender = normalize_address(sender)
        target = normalize_address(target)
        with self._lock:
            contract = self.contracts.get(target)
            if contract is None:
                return b""
            self._static_depth += 1
            try:
                result = contract.handle_call(self, sender, 0, bytes(data))
            finally:
                self._static_depth -= 1
            return bytes(result or b"")
