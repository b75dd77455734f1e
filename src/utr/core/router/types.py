"""Domain types for the router's action-execution engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from ..abi import UINT256_MAX, ZERO_ADDRESS, keccak256, normalize_address
from ..router_exceptions import InvalidAssetClassError

# NonFungible id meaning "count every unit the holder owns"
ID_721_ALL = int.from_bytes(keccak256(b"UniversalTokenRouter.ID_721_ALL"), "big")

# Trailing payload word replaced by the most recent call result
CALL_RESULT_PLACEHOLDER = keccak256(b"UniversalTokenRouter.CALL_RESULT")

# Offsets below one word mean "static amount"
DYNAMIC_OFFSET_MIN = 32


class AssetClass(Enum):
    """Asset classes, tagged with their EIP numbers (0 for the native coin)."""

    NATIVE = 0
    FUNGIBLE = 20
    NON_FUNGIBLE = 721
    SEMI_FUNGIBLE = 1155

    @classmethod
    def from_tag(cls, tag: object) -> "AssetClass":
        """
        Resolve an enum member, integer tag or member name.

        Raises:
            InvalidAssetClassError: If the tag names no asset class
        """
        if isinstance(tag, cls):
            return tag
        if isinstance(tag, int) and not isinstance(tag, bool):
            for member in cls:
                if member.value == tag:
                    return member
        if isinstance(tag, str) and tag.upper() in cls.__members__:
            return cls[tag.upper()]
        raise InvalidAssetClassError(
            f"Unrecognised asset class: {tag!r}", details={"tag": repr(tag)}
        )


class ActionKind(Enum):
    """Action kinds, valued by their on-chain integer encoding."""

    INPUT = 0
    OUTPUT_MANDATORY = 1
    OUTPUT_OPTIONAL = 2

    @property
    def is_output(self) -> bool:
        return self is not ActionKind.INPUT


def _check_uint256(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"{name} out of uint256 range: {value}")


@dataclass(frozen=True)
class AssetRef:
    asset_class: AssetClass
    contract: str = ZERO_ADDRESS
    id: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "asset_class", AssetClass.from_tag(self.asset_class))
        object.__setattr__(self, "contract", normalize_address(self.contract))
        _check_uint256("id", self.id)

    @classmethod
    def native(cls) -> "AssetRef":
        return cls(AssetClass.NATIVE)

    @classmethod
    def fungible(cls, contract: str) -> "AssetRef":
        return cls(AssetClass.FUNGIBLE, contract)

    @classmethod
    def non_fungible(cls, contract: str, token_id: int = ID_721_ALL) -> "AssetRef":
        return cls(AssetClass.NON_FUNGIBLE, contract, token_id)

    @classmethod
    def semi_fungible(cls, contract: str, token_id: int) -> "AssetRef":
        return cls(AssetClass.SEMI_FUNGIBLE, contract, token_id)


@dataclass(frozen=True)
class TokenSpec:
    """
    One asset movement or expectation inside an action.

    For inputs ``amount`` is the ceiling (and the exact amount when
    ``offset`` is static); for outputs it is the minimum balance increase
    of ``recipient``.
    """

    asset: AssetRef
    amount: int
    offset: int = 0
    recipient: str = ZERO_ADDRESS

    def __post_init__(self) -> None:
        _check_uint256("amount", self.amount)
        _check_uint256("offset", self.offset)
        object.__setattr__(self, "recipient", normalize_address(self.recipient))

    @property
    def is_dynamic(self) -> bool:
        return self.offset >= DYNAMIC_OFFSET_MIN

    @property
    def is_deferred_native(self) -> bool:
        """Native input with no recipient: value rides on the next output call."""
        return self.asset.asset_class is AssetClass.NATIVE and self.recipient == ZERO_ADDRESS


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    target: str = ZERO_ADDRESS
    payload: bytes = b""
    tokens: Tuple[TokenSpec, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ActionKind):
            object.__setattr__(self, "kind", ActionKind(self.kind))
        object.__setattr__(self, "target", normalize_address(self.target))
        object.__setattr__(self, "payload", bytes(self.payload))
        object.__setattr__(self, "tokens", tuple(self.tokens))

    @property
    def has_call(self) -> bool:
        return self.target != ZERO_ADDRESS


@dataclass
class ExecutionContext:
    """Transient data threaded through one invocation, in action order."""

    last_result: bytes = b""
    carried_native: Optional[int] = None
    pre_balances: Dict[Tuple[int, int], int] = field(default_factory=dict)

    def take_carried_native(self) -> int:
        """Consume the carried native amount (zero when nothing is carried)."""
        value = self.carried_native or 0
        self.carried_native = None
        return value


@dataclass(frozen=True)
class ExecutionReceipt:
    """Outcome of a successful invocation."""

    caller: str
    actions_executed: int
    optional_failures: Tuple[Tuple[int, str], ...] = ()
    refunded: int = 0
    last_result: bytes = b""
