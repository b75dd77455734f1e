"""
ERC1155 Multi-Token Standard Implementation.

In-memory semi-fungible token contract compatible with EIP-1155: one
contract tracks balances for many token ids, transfers move an amount of a
single id, and operators are approved per holder.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..abi import ZERO_ADDRESS, UINT256_MAX, encode_bool, encode_uint256
from ..router_exceptions import VMExecutionError
from .base import Contract
from .erc20 import derive_address

if TYPE_CHECKING:
    from ..state import WorldState

logger = logging.getLogger(__name__)


@dataclass
class MultiTokenEvent:
    """Represents an ERC1155 event."""

    event_type: str  # "TransferSingle", "ApprovalForAll"
    operator: str
    from_address: str
    to_address: str
    ids: list[int]
    values: list[int]
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC1155Token(Contract):
    """Multi-token contract with owner-only minting."""

    uri: str = ""
    address: str = ""
    owner: str = ""
    balances: dict[int, dict[str, int]] = field(default_factory=dict)  # id -> holder -> amount
    operator_approvals: dict[str, dict[str, bool]] = field(default_factory=dict)
    total_supply: dict[int, int] = field(default_factory=dict)
    events: list[MultiTokenEvent] = field(default_factory=list)

    LABEL = "ERC1155"
    ABI_METHODS = {
        "balanceOf(address,uint256)": "_abi_balance_of",
        "setApprovalForAll(address,bool)": "_abi_set_approval_for_all",
        "isApprovedForAll(address,address)": "_abi_is_approved_for_all",
        "safeTransferFrom(address,address,uint256,uint256,bytes)": "_abi_safe_transfer_from",
    }

    def __post_init__(self) -> None:
        if not self.address:
            self.address = derive_address("ERC1155", self.uri)
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner) if self.owner else ""

    # ==================== View Functions ====================

    def balance_of(self, account: str, token_id: int) -> int:
        account_norm = self._normalize(account)
        if account_norm == ZERO_ADDRESS:
            raise VMExecutionError("ERC1155: balance query for zero address")
        return self.balances.get(token_id, {}).get(account_norm, 0)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.operator_approvals.get(self._normalize(owner), {}).get(
            self._normalize(operator), False
        )

    # ==================== State-Changing Functions ====================

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> bool:
        caller_norm = self._normalize(caller)
        operator_norm = self._normalize(operator)
        if caller_norm == operator_norm:
            raise VMExecutionError("ERC1155: setting approval status for self")

        self.operator_approvals.setdefault(caller_norm, {})[operator_norm] = approved
        self.events.append(
            MultiTokenEvent("ApprovalForAll", caller_norm, caller_norm, operator_norm, [], [])
        )
        return True

    def safe_transfer_from(
        self,
        caller: str,
        from_addr: str,
        to_addr: str,
        token_id: int,
        amount: int,
        data: bytes = b"",
    ) -> bool:
        """
        Transfer ``amount`` of ``token_id`` from one address to another.

        Raises:
            VMExecutionError: If the caller is not the holder or an approved
                operator, the recipient is zero, or the balance is too low
        """
        caller_norm = self._normalize(caller)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        if to_norm == ZERO_ADDRESS:
            raise VMExecutionError("ERC1155: transfer to zero address")
        if from_norm != caller_norm and not self.is_approved_for_all(from_norm, caller_norm):
            raise VMExecutionError("ERC1155: caller is not owner nor approved")
        if amount < 0 or amount > UINT256_MAX:
            raise VMExecutionError("ERC1155: amount out of range")

        from_balance = self.balance_of(from_norm, token_id)
        if from_balance < amount:
            raise VMExecutionError(
                f"ERC1155: insufficient balance for transfer ({amount} > {from_balance})"
            )

        holders = self.balances.setdefault(token_id, {})
        holders[from_norm] = from_balance - amount
        holders[to_norm] = holders.get(to_norm, 0) + amount
        self.events.append(
            MultiTokenEvent("TransferSingle", caller_norm, from_norm, to_norm, [token_id], [amount])
        )

        logger.debug(
            "ERC1155 transfer",
            extra={
                "event": "erc1155.transfer",
                "token_id": token_id,
                "amount": amount,
                "from": from_norm[:10],
                "to": to_norm[:10],
            },
        )
        return True

    def mint(self, minter: str, to: str, token_id: int, amount: int) -> bool:
        """Mint ``amount`` units of ``token_id`` (owner only)."""
        if not self.owner or self._normalize(minter) != self.owner:
            raise VMExecutionError("ERC1155: caller is not owner")
        to_norm = self._normalize(to)
        if to_norm == ZERO_ADDRESS:
            raise VMExecutionError("ERC1155: mint to zero address")
        if amount < 0:
            raise VMExecutionError("ERC1155: amount cannot be negative")

        holders = self.balances.setdefault(token_id, {})
        holders[to_norm] = holders.get(to_norm, 0) + amount
        self.total_supply[token_id] = self.total_supply.get(token_id, 0) + amount
        self.events.append(
            MultiTokenEvent("TransferSingle", to_norm, ZERO_ADDRESS, to_norm, [token_id], [amount])
        )
        return True

    # ==================== ABI Handlers ====================

    def _abi_balance_of(
        self, state: "WorldState", sender: str, value: int, account: str, token_id: int
    ) -> bytes:
        return encode_uint256(self.balance_of(account, token_id))

    def _abi_set_approval_for_all(
        self, state: "WorldState", sender: str, value: int, operator: str, approved: bool
    ) -> bytes:
        self.set_approval_for_all(sender, operator, approved)
        return b""

    def _abi_is_approved_for_all(
        self, state: "WorldState", sender: str, value: int, owner: str, operator: str
    ) -> bytes:
        return encode_bool(self.is_approved_for_all(owner, operator))

    def _abi_safe_transfer_from(
        self,
        state: "WorldState",
        sender: str,
        value: int,
        from_addr: str,
        to_addr: str,
        token_id: int,
        amount: int,
        data: bytes,
    ) -> bytes:
        self.safe_transfer_from(sender, from_addr, to_addr, token_id, amount, data)
        return b""

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return address.lower()
