"""
ERC721 Non-Fungible Token (NFT) Standard Implementation.

In-memory NFT collection compatible with EIP-721: ownership, per-token and
operator approvals, transfers and owner-only minting.

Security features:
- Owner verification on all transfers
- Approval validation
- Zero address checks
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..abi import ZERO_ADDRESS, encode_address, encode_bool, encode_uint256
from ..router_exceptions import VMExecutionError
from .base import Contract
from .erc20 import derive_address

if TYPE_CHECKING:
    from ..state import WorldState

logger = logging.getLogger(__name__)


@dataclass
class NFTEvent:
    """Represents an ERC721 event."""

    event_type: str  # "Transfer", "Approval", "ApprovalForAll"
    from_address: str
    to_address: str
    token_id: int
    approved: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC721Token(Contract):
    """NFT collection with enumerable-by-owner balances."""

    name: str
    symbol: str
    address: str = ""
    owner: str = ""
    owners: dict[int, str] = field(default_factory=dict)  # tokenId -> owner
    balances: dict[str, int] = field(default_factory=dict)  # owner -> count
    token_approvals: dict[int, str] = field(default_factory=dict)
    operator_approvals: dict[str, dict[str, bool]] = field(default_factory=dict)
    next_token_id: int = 1
    events: list[NFTEvent] = field(default_factory=list)

    LABEL = "ERC721"
    ABI_METHODS = {
        "balanceOf(address)": "_abi_balance_of",
        "ownerOf(uint256)": "_abi_owner_of",
        "approve(address,uint256)": "_abi_approve",
        "setApprovalForAll(address,bool)": "_abi_set_approval_for_all",
        "transferFrom(address,address,uint256)": "_abi_transfer_from",
        "safeTransferFrom(address,address,uint256)": "_abi_transfer_from",
    }

    def __post_init__(self) -> None:
        if not self.address:
            self.address = derive_address("ERC721", self.name, self.symbol)
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner) if self.owner else ""

    # ==================== View Functions ====================

    def balance_of(self, owner: str) -> int:
        owner_norm = self._normalize(owner)
        if owner_norm == ZERO_ADDRESS:
            raise VMExecutionError("ERC721: balance query for zero address")
        return self.balances.get(owner_norm, 0)

    def owner_of(self, token_id: int) -> str:
        """
        Get the owner of a token.

        Raises:
            VMExecutionError: If the token has not been minted
        """
        self._require_minted(token_id)
        return self.owners[token_id]

    def exists(self, token_id: int) -> bool:
        return token_id in self.owners

    def get_approved(self, token_id: int) -> str:
        self._require_minted(token_id)
        return self.token_approvals.get(token_id, ZERO_ADDRESS)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.operator_approvals.get(self._normalize(owner), {}).get(
            self._normalize(operator), False
        )

    # ==================== State-Changing Functions ====================

    def approve(self, caller: str, to: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        caller_norm = self._normalize(caller)
        to_norm = self._normalize(to)

        if to_norm == owner:
            raise VMExecutionError("ERC721: approval to current owner")
        if caller_norm != owner and not self.is_approved_for_all(owner, caller_norm):
            raise VMExecutionError("ERC721: approve caller is not owner nor approved")

        self.token_approvals[token_id] = to_norm
        self.events.append(NFTEvent("Approval", owner, to_norm, token_id))
        return True

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> bool:
        caller_norm = self._normalize(caller)
        operator_norm = self._normalize(operator)
        if operator_norm == caller_norm:
            raise VMExecutionError("ERC721: approve to caller")

        self.operator_approvals.setdefault(caller_norm, {})[operator_norm] = approved
        self.events.append(
            NFTEvent("ApprovalForAll", caller_norm, operator_norm, 0, approved=approved)
        )
        return True

    def transfer_from(self, caller: str, from_addr: str, to_addr: str, token_id: int) -> bool:
        """
        Transfer an NFT.

        Raises:
            VMExecutionError: If ``from_addr`` does not own the token, the
                caller is not authorised, or ``to_addr`` is the zero address
        """
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)
        caller_norm = self._normalize(caller)

        owner = self.owner_of(token_id)
        if owner != from_norm:
            raise VMExecutionError("ERC721: transfer from incorrect owner")
        if not self._is_approved_or_owner(caller_norm, token_id):
            raise VMExecutionError("ERC721: caller is not owner nor approved")
        if to_norm == ZERO_ADDRESS:
            raise VMExecutionError("ERC721: transfer to zero address")

        self.token_approvals.pop(token_id, None)
        self.balances[from_norm] = self.balances.get(from_norm, 1) - 1
        self.balances[to_norm] = self.balances.get(to_norm, 0) + 1
        self.owners[token_id] = to_norm
        self.events.append(NFTEvent("Transfer", from_norm, to_norm, token_id))

        logger.debug(
            "ERC721 transfer",
            extra={
                "event": "erc721.transfer",
                "collection": self.symbol,
                "token_id": token_id,
                "from": from_norm[:10],
                "to": to_norm[:10],
            },
        )
        return True

    # Receiver hooks are not modelled, so a safe transfer is a plain transfer
    safe_transfer_from = transfer_from

    def mint(self, minter: str, to: str, token_id: int | None = None) -> int:
        """
        Mint a new NFT (owner only).

        Returns:
            The minted token id
        """
        self._require_owner(minter)
        to_norm = self._normalize(to)
        if to_norm == ZERO_ADDRESS:
            raise VMExecutionError("ERC721: mint to zero address")

        if token_id is None:
            token_id = self.next_token_id
            while token_id in self.owners:
                token_id += 1
        if token_id in self.owners:
            raise VMExecutionError(f"ERC721: token {token_id} already minted")

        self.owners[token_id] = to_norm
        self.balances[to_norm] = self.balances.get(to_norm, 0) + 1
        self.next_token_id = max(self.next_token_id, token_id + 1)
        self.events.append(NFTEvent("Transfer", ZERO_ADDRESS, to_norm, token_id))
        return token_id

    # ==================== ABI Handlers ====================

    def _abi_balance_of(self, state: "WorldState", sender: str, value: int, owner: str) -> bytes:
        return encode_uint256(self.balance_of(owner))

    def _abi_owner_of(self, state: "WorldState", sender: str, value: int, token_id: int) -> bytes:
        return encode_address(self.owner_of(token_id))

    def _abi_approve(
        self, state: "WorldState", sender: str, value: int, to: str, token_id: int
    ) -> bytes:
        return encode_bool(self.approve(sender, to, token_id))

    def _abi_set_approval_for_all(
        self, state: "WorldState", sender: str, value: int, operator: str, approved: bool
    ) -> bytes:
        return encode_bool(self.set_approval_for_all(sender, operator, approved))

    def _abi_transfer_from(
        self,
        state: "WorldState",
        sender: str,
        value: int,
        from_addr: str,
        to_addr: str,
        token_id: int,
    ) -> bytes:
        self.transfer_from(sender, from_addr, to_addr, token_id)
        return b""

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _require_minted(self, token_id: int) -> None:
        if token_id not in self.owners:
            raise VMExecutionError(f"ERC721: token {token_id} does not exist")

    def _require_owner(self, caller: str) -> None:
        if not self.owner or self._normalize(caller) != self.owner:
            raise VMExecutionError("ERC721: caller is not owner")

    def _is_approved_or_owner(self, caller: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            caller == owner
            or self.token_approvals.get(token_id) == caller
            or self.is_approved_for_all(owner, caller)
        )
