"""
Contract base class for the in-memory host environment.

A contract owns its storage as plain instance attributes. The host takes a
deep copy of the public attributes before a transaction or call and writes
it back on failure, so a reverted call leaves no partial writes behind.
Attributes whose name starts with an underscore are treated as wiring
(references to collaborators) and are never copied or restored.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Dict, Tuple

from ..abi import decode_args, function_selector, parse_signature
from ..router_exceptions import SliceOutOfRangeError, VMExecutionError

if TYPE_CHECKING:
    from ..state import WorldState


class Contract:
    """Base class for contracts registered in a WorldState."""

    address: str

    # Canonical ABI signature -> name of the bound handler
    ABI_METHODS: Dict[str, str] = {}

    # Whether calls may carry native value
    PAYABLE = False

    LABEL = "Contract"

    _SELECTORS: Dict[bytes, Tuple[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._SELECTORS = {
            function_selector(signature): (signature, handler)
            for signature, handler in cls.ABI_METHODS.items()
        }

    # ==================== Calls ====================

    def handle_call(
        self, state: "WorldState", sender: str, value: int, data: bytes
    ) -> bytes:
        """
        Dispatch ABI calldata to the matching handler.

        Handlers receive ``(state, sender, value, *decoded_args)`` and return
        the raw result bytes.

        Raises:
            VMExecutionError: On missing/unknown selector, undecodable
                arguments, value sent to a non-payable contract, or any
                failure raised by the handler itself
        """
        if value and not self.PAYABLE:
            raise VMExecutionError(f"{self.LABEL}: contract is not payable")
        if len(data) < 4:
            raise VMExecutionError(f"{self.LABEL}: missing function selector")

        entry = self._SELECTORS.get(bytes(data[:4]))
        if entry is None:
            raise VMExecutionError(
                f"{self.LABEL}: unknown function selector 0x{bytes(data[:4]).hex()}"
            )
        signature, handler = entry
        _, types = parse_signature(signature)
        try:
            args = decode_args(bytes(data[4:]), types)
        except (ValueError, SliceOutOfRangeError) as e:
            raise VMExecutionError(f"{self.LABEL}: malformed calldata ({e})") from e
        return getattr(self, handler)(state, sender, value, *args)

    # ==================== Storage snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the contract's public storage."""
        return copy.deepcopy(
            {k: v for k, v in vars(self).items() if not k.startswith("_")}
        )

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Replace the contract's public storage with ``snapshot``."""
        for key in [k for k in vars(self) if not k.startswith("_")]:
            if key not in snapshot:
                delattr(self, key)
        for key, value in copy.deepcopy(snapshot).items():
            setattr(self, key, value)
