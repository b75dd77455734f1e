"""
Tests for decoding execute requests from JSON-shaped documents.
"""

import pytest
from pydantic import ValidationError

from utr.core import config
from utr.core.abi import encode_call, function_selector
from utr.core.input_validation_schemas import (
    ActionInput,
    AssetInput,
    CallInput,
    ExecuteRequestInput,
    TokenSpecInput,
)
from utr.core.router import ActionKind, AssetClass, ID_721_ALL

from router_helpers import ALICE, POOL, TOKEN_A, TOKEN_B


def swap_request():
    return {
        "caller": ALICE.upper().replace("0X", "0x"),
        "value": "0x10",
        "actions": [
            {
                "kind": "INPUT",
                "tokens": [
                    {"asset": {"class": 20, "contract": TOKEN_A}, "amount": "100", "recipient": POOL}
                ],
            },
            {
                "kind": 1,
                "target": POOL,
                "payload": {"signature": "swap(uint256,address)", "args": ["100", ALICE]},
                "tokens": [
                    {"asset": {"class": "FUNGIBLE", "contract": TOKEN_B}, "amount": 95, "recipient": ALICE}
                ],
            },
        ],
    }


class TestExecuteRequest:
    def test_decodes_swap_request(self):
        request = ExecuteRequestInput.model_validate(swap_request())
        assert request.caller == ALICE
        assert request.value == 16

        first, second = request.to_actions()
        assert first.kind is ActionKind.INPUT
        assert not first.has_call
        assert first.tokens[0].amount == 100
        assert first.tokens[0].recipient == POOL
        assert second.kind is ActionKind.OUTPUT_MANDATORY
        assert second.payload == encode_call("swap(uint256,address)", [100, ALICE])
        assert second.tokens[0].asset.asset_class is AssetClass.FUNGIBLE

    def test_action_limit(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_ACTIONS", 1)
        with pytest.raises(ValidationError, match="exceeds limit"):
            ExecuteRequestInput.model_validate(swap_request())

    def test_rejects_bad_caller(self):
        document = swap_request()
        document["caller"] = "alice"
        with pytest.raises(ValidationError):
            ExecuteRequestInput.model_validate(document)


class TestActionInput:
    @pytest.mark.parametrize("kind,expected", [
        (0, ActionKind.INPUT),
        ("2", ActionKind.OUTPUT_OPTIONAL),
        ("output_mandatory", ActionKind.OUTPUT_MANDATORY),
    ])
    def test_kind_forms(self, kind, expected):
        assert ActionInput.model_validate({"kind": kind}).kind is expected

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            ActionInput.model_validate({"kind": "REFUND"})

    def test_hex_payload(self):
        selector = function_selector("ping()")
        action = ActionInput.model_validate({"kind": 1, "target": POOL, "payload": "0x" + selector.hex()})
        assert action.to_action().payload == selector

    def test_invalid_hex_payload(self):
        with pytest.raises(ValidationError, match="not valid hex"):
            ActionInput.model_validate({"kind": 1, "payload": "0xzz"})

    def test_payload_size_limit(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_PAYLOAD_BYTES", 4)
        with pytest.raises(ValidationError, match="exceeds limit"):
            ActionInput.model_validate({"kind": 1, "payload": "0x" + "00" * 5})

    def test_token_limit(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_TOKENS_PER_ACTION", 0)
        token = {"asset": {"class": 0}, "amount": 1}
        with pytest.raises(ValidationError, match="exceeds limit"):
            ActionInput.model_validate({"kind": 0, "tokens": [token]})


class TestAssetAndTokens:
    def test_unknown_asset_class_rejected(self):
        with pytest.raises(ValidationError, match="Unrecognised asset class"):
            AssetInput.model_validate({"class": 777, "contract": TOKEN_A})

    def test_asset_defaults(self):
        asset = AssetInput.model_validate({"class": "NATIVE"}).to_asset()
        assert asset.asset_class is AssetClass.NATIVE
        assert asset.id == 0

    def test_large_ids_as_strings(self):
        asset = AssetInput.model_validate(
            {"class": "721", "contract": TOKEN_A, "id": str(ID_721_ALL)}
        ).to_asset()
        assert asset.id == ID_721_ALL

    @pytest.mark.parametrize("amount", [-1, 2**256, True, "ten"])
    def test_amount_must_be_uint256(self, amount):
        with pytest.raises(ValidationError):
            TokenSpecInput.model_validate({"asset": {"class": 0}, "amount": amount})

    def test_dynamic_offset(self):
        spec = TokenSpecInput.model_validate(
            {"asset": {"class": 20, "contract": TOKEN_A}, "amount": 100, "offset": "0x20"}
        ).to_token_spec()
        assert spec.is_dynamic
        assert spec.offset == 32


class TestCallInput:
    def test_arity_checked(self):
        with pytest.raises(ValidationError, match="takes 2 arguments"):
            CallInput.model_validate({"signature": "swap(uint256,address)", "args": [1]})

    def test_bytes_argument_from_hex(self):
        payload = CallInput.model_validate({"signature": "record(bytes)", "args": ["0xabcd"]}).encode()
        assert payload == encode_call("record(bytes)", [b"\xab\xcd"])
