from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import config
from .abi import UINT256_MAX, ZERO_ADDRESS, encode_call, normalize_address, parse_signature
from .router.types import Action, ActionKind, AssetClass, AssetRef, TokenSpec
from .router_exceptions import InvalidAssetClassError


def _parse_uint(value: Any) -> int:
    """Accept ints, decimal strings and 0x-prefixed hex strings."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a uint256")
    if isinstance(value, str):
        text = value.strip().replace("_", "")
        value = int(text, 16) if text.lower().startswith("0x") else int(text)
    if not isinstance(value, int):
        raise ValueError(f"expected an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError("value out of uint256 range")
    return value


def _parse_address(value: Any) -> str:
    return normalize_address(value)


class AssetInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    asset_class: AssetClass = Field(alias="class")
    contract: str = ZERO_ADDRESS
    id: int = 0

    @field_validator("asset_class", mode="before")
    @classmethod
    def check_asset_class(cls, value: Any) -> AssetClass:
        # InvalidAssetClassError is not a ValueError, so translate for pydantic
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value)
        try:
            return AssetClass.from_tag(value)
        except InvalidAssetClassError as e:
            raise ValueError(str(e)) from e

    @field_validator("contract", mode="before")
    @classmethod
    def check_contract(cls, value: Any) -> str:
        return _parse_address(value)

    @field_validator("id", mode="before")
    @classmethod
    def check_id(cls, value: Any) -> int:
        return _parse_uint(value)

    def to_asset(self) -> AssetRef:
        return AssetRef(self.asset_class, self.contract, self.id)


class TokenSpecInput(BaseModel):
    asset: AssetInput
    amount: int
    offset: int = 0
    recipient: str = ZERO_ADDRESS

    @field_validator("amount", "offset", mode="before")
    @classmethod
    def check_uints(cls, value: Any) -> int:
        return _parse_uint(value)

    @field_validator("recipient", mode="before")
    @classmethod
    def check_recipient(cls, value: Any) -> str:
        return _parse_address(value)

    def to_token_spec(self) -> TokenSpec:
        return TokenSpec(self.asset.to_asset(), self.amount, self.offset, self.recipient)


class CallInput(BaseModel):
    """Calldata given as a function signature plus arguments."""

    signature: str
    args: list[Any] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_arity(self) -> "CallInput":
        _, types = parse_signature(self.signature)
        if len(types) != len(self.args):
            raise ValueError(
                f"{self.signature} takes {len(types)} arguments, got {len(self.args)}"
            )
        return self

    def encode(self) -> bytes:
        _, types = parse_signature(self.signature)
        coerced: list[Any] = []
        for abi_type, arg in zip(types, self.args):
            if abi_type in ("uint256", "uint"):
                coerced.append(_parse_uint(arg))
            elif abi_type == "bytes" and isinstance(arg, str):
                coerced.append(_parse_hex(arg))
            else:
                coerced.append(arg)
        return encode_call(self.signature, coerced)


def _parse_hex(value: str) -> bytes:
    text = value.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise ValueError(f"payload is not valid hex: {value!r}") from None


class ActionInput(BaseModel):
    kind: ActionKind
    target: str = ZERO_ADDRESS
    payload: bytes = b""
    tokens: list[TokenSpecInput] = Field(default_factory=list)

    @field_validator("kind", mode="before")
    @classmethod
    def check_kind(cls, value: Any) -> ActionKind:
        if isinstance(value, ActionKind):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return ActionKind(value)
        if isinstance(value, str) and value.upper() in ActionKind.__members__:
            return ActionKind[value.upper()]
        raise ValueError(f"unknown action kind: {value!r}")

    @field_validator("target", mode="before")
    @classmethod
    def check_target(cls, value: Any) -> str:
        return _parse_address(value)

    @field_validator("payload", mode="before")
    @classmethod
    def check_payload(cls, value: Any) -> bytes:
        if value is None:
            return b""
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
        elif isinstance(value, str):
            data = _parse_hex(value)
        elif isinstance(value, dict):
            data = CallInput.model_validate(value).encode()
        else:
            raise ValueError(f"unsupported payload type: {type(value).__name__}")
        if len(data) > config.MAX_PAYLOAD_BYTES:
            raise ValueError(
                f"payload of {len(data)} bytes exceeds limit of {config.MAX_PAYLOAD_BYTES}"
            )
        return data

    @field_validator("tokens")
    @classmethod
    def check_token_limit(cls, value: list[TokenSpecInput]) -> list[TokenSpecInput]:
        if len(value) > config.MAX_TOKENS_PER_ACTION:
            raise ValueError(
                f"{len(value)} tokens exceeds limit of {config.MAX_TOKENS_PER_ACTION}"
            )
        return value

    def to_action(self) -> Action:
        return Action(
            kind=self.kind,
            target=self.target,
            payload=self.payload,
            tokens=tuple(token.to_token_spec() for token in self.tokens),
        )


class ExecuteRequestInput(BaseModel):
    caller: str
    value: int = 0
    actions: list[ActionInput]

    @field_validator("caller", mode="before")
    @classmethod
    def check_caller(cls, value: Any) -> str:
        return _parse_address(value)

    @field_validator("value", mode="before")
    @classmethod
    def check_value(cls, value: Any) -> int:
        return _parse_uint(value)

    @field_validator("actions")
    @classmethod
    def check_action_limit(cls, value: list[ActionInput]) -> list[ActionInput]:
        if len(value) > config.MAX_ACTIONS:
            raise ValueError(f"{len(value)} actions exceeds limit of {config.MAX_ACTIONS}")
        return value

    def to_actions(self) -> tuple[Action, ...]:
        return tuple(action.to_action() for action in self.actions)
