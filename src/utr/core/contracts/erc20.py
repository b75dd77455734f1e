"""
ERC20 Token Standard Implementation.

In-memory fungible token compatible with the Ethereum ERC20 standard
(EIP-20). The router pulls fungible inputs through ``transferFrom`` and
reads balances through ``balanceOf``; the same functions are reachable as
ABI calls so output actions can invoke the token directly.

Security features:
- uint256 range checks
- Zero address checks
- Balance and allowance underflow prevention
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..abi import ZERO_ADDRESS, UINT256_MAX, encode_bool, encode_uint256, keccak256
from ..router_exceptions import VMExecutionError
from .base import Contract

if TYPE_CHECKING:
    from ..state import WorldState

logger = logging.getLogger(__name__)

_deployment_nonce = itertools.count(1)


def derive_address(*parts: str) -> str:
    """Deterministic pseudo-address for contracts created without one."""
    seed = "|".join(parts + (str(next(_deployment_nonce)),)).encode()
    return "0x" + keccak256(seed)[-20:].hex()


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token(Contract):
    """
    Fungible token with owner-only minting.

    Balances and allowances live in plain dicts keyed by lowercase address,
    so the host can snapshot and restore them wholesale.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    LABEL = "ERC20"
    ABI_METHODS = {
        "balanceOf(address)": "_abi_balance_of",
        "allowance(address,address)": "_abi_allowance",
        "totalSupply()": "_abi_total_supply",
        "transfer(address,uint256)": "_abi_transfer",
        "approve(address,uint256)": "_abi_approve",
        "transferFrom(address,address,uint256)": "_abi_transfer_from",
    }

    def __post_init__(self) -> None:
        if not self.address:
            self.address = derive_address("ERC20", self.name, self.symbol)
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner) if self.owner else ""

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(self._normalize(owner), {}).get(
            self._normalize(spender), 0
        )

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Raises:
            VMExecutionError: If the recipient is the zero address, the amount
                is out of range or the sender's balance is too low
        """
        self._move(self._normalize(sender), self._normalize(recipient), amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.events.append(TokenEvent("Approval", owner_norm, spender_norm, amount))
        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens on behalf of ``from_addr`` using the spender's
        allowance. An allowance of UINT256_MAX is treated as unlimited.

        Raises:
            VMExecutionError: If the allowance or balance is insufficient
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        self._validate_amount(amount)

        if spender_norm != from_norm:
            current = self.allowance(from_norm, spender_norm)
            if current < amount:
                raise VMExecutionError(
                    f"ERC20: insufficient allowance ({amount} > {current})"
                )
            if current != UINT256_MAX:
                self.allowances[from_norm][spender_norm] = current - amount

        self._move(from_norm, self._normalize(to_addr), amount)
        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Mint new tokens (owner only)."""
        self._require_owner(minter)
        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)
        if self.total_supply + amount > UINT256_MAX:
            raise VMExecutionError("ERC20: total supply overflow")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, to_norm, amount))

        logger.info(
            "ERC20 tokens minted",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
            },
        )
        return True

    # ==================== ABI Handlers ====================

    def _abi_balance_of(self, state: "WorldState", sender: str, value: int, account: str) -> bytes:
        return encode_uint256(self.balance_of(account))

    def _abi_allowance(
        self, state: "WorldState", sender: str, value: int, owner: str, spender: str
    ) -> bytes:
        return encode_uint256(self.allowance(owner, spender))

    def _abi_total_supply(self, state: "WorldState", sender: str, value: int) -> bytes:
        return encode_uint256(self.total_supply)

    def _abi_transfer(
        self, state: "WorldState", sender: str, value: int, recipient: str, amount: int
    ) -> bytes:
        return encode_bool(self.transfer(sender, recipient, amount))

    def _abi_approve(
        self, state: "WorldState", sender: str, value: int, spender: str, amount: int
    ) -> bytes:
        return encode_bool(self.approve(sender, spender, amount))

    def _abi_transfer_from(
        self,
        state: "WorldState",
        sender: str,
        value: int,
        from_addr: str,
        to_addr: str,
        amount: int,
    ) -> bytes:
        return encode_bool(self.transfer_from(sender, from_addr, to_addr, amount))

    # ==================== Helpers ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise VMExecutionError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})"
            )
        self.balances[from_norm] = from_balance - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", from_norm, to_norm, amount))

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": from_norm[:10],
                "to": to_norm[:10],
                "amount": amount,
            },
        )

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _validate_address(self, address: str, field_name: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise VMExecutionError(f"ERC20: {field_name} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if amount < 0:
            raise VMExecutionError("ERC20: amount cannot be negative")
        if amount > UINT256_MAX:
            raise VMExecutionError("ERC20: amount exceeds uint256")

    def _require_owner(self, caller: str) -> None:
        if not self.owner or self._normalize(caller) != self.owner:
            raise VMExecutionError("ERC20: caller is not owner")
