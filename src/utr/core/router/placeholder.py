"""Late binding of the last call result into an output call's payload."""

from __future__ import annotations

from ..abi import WORD_SIZE, encode_bytes
from .types import CALL_RESULT_PLACEHOLDER


def has_placeholder(payload: bytes) -> bool:
    """
    True when the payload ends with the words ``(32, CALL_RESULT_PLACEHOLDER)``,
    i.e. a single trailing ``bytes`` argument whose content is the sentinel.
    """
    if len(payload) < 2 * WORD_SIZE:
        return False
    offset_word = payload[-2 * WORD_SIZE:-WORD_SIZE]
    return (
        bytes(payload[-WORD_SIZE:]) == CALL_RESULT_PLACEHOLDER
        and int.from_bytes(offset_word, "big") == WORD_SIZE
    )


def substitute_placeholder(payload: bytes, last_result: bytes) -> bytes:
    """
    Replace the trailing sentinel word with the ABI encoding of ``last_result``
    (length word, data, zero padding). Everything before the sentinel,
    including the offset word, is kept as is. Payloads without the sentinel
    are returned unchanged.
    """
    payload = bytes(payload)
    if not has_placeholder(payload):
        return payload
    return payload[:-WORD_SIZE] + encode_bytes(bytes(last_result))
