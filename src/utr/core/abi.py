"""
Minimal ABI utilities for router payloads.

Supports the subset of the Ethereum contract ABI the router and the
in-memory asset contracts need:
- keccak256 hashing and 4-byte function selectors
- 32-byte big-endian words for ``uint256``, ``address`` and ``bool``
- length-prefixed ``bytes`` (the tail encoding of a dynamic argument)

All readers are bounds-checked: reading past the end of a buffer raises
SliceOutOfRangeError instead of zero-padding.
"""

from __future__ import annotations

from typing import Any, Sequence

from Crypto.Hash import keccak

from .router_exceptions import SliceOutOfRangeError

WORD_SIZE = 32
UINT256_MAX = 2**256 - 1
ZERO_ADDRESS = "0x" + "0" * 40


def keccak256(data: bytes) -> bytes:
    """Compute keccak256 hash (same as Ethereum)."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def function_selector(signature: str) -> bytes:
    """Return the 4-byte selector for a canonical function signature."""
    return keccak256(signature.encode())[:4]


def normalize_address(address: str) -> str:
    """Lowercase a 0x-prefixed 20-byte hex address, validating its shape."""
    if not isinstance(address, str):
        raise ValueError(f"Address must be a string, got {type(address).__name__}")
    value = address.lower()
    if not value.startswith("0x") or len(value) != 42:
        raise ValueError(f"Invalid address: {address!r}")
    try:
        int(value[2:], 16)
    except ValueError:
        raise ValueError(f"Invalid address: {address!r}") from None
    return value


# ==================== Encoding ====================

def encode_uint256(value: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"uint256 must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(WORD_SIZE, "big")


def encode_address(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(normalize_address(address)[2:])


def encode_bool(value: bool) -> bytes:
    return encode_uint256(1 if value else 0)


def encode_bytes(data: bytes) -> bytes:
    """Length word followed by ``data`` zero-padded to a word boundary."""
    padding = (-len(data)) % WORD_SIZE
    return encode_uint256(len(data)) + bytes(data) + bytes(padding)


def encode_args(types: Sequence[str], args: Sequence[Any]) -> bytes:
    """
    ABI-encode arguments (head/tail layout).

    Args:
        types: ABI type names (address, uint256, bool, bytes)
        args: Values matching ``types``

    Returns:
        Encoded argument block without selector
    """
    if len(types) != len(args):
        raise ValueError(f"Expected {len(types)} arguments, got {len(args)}")

    head_size = WORD_SIZE * len(types)
    heads: list[bytes] = []
    tails: list[bytes] = []
    tail_offset = head_size
    for abi_type, arg in zip(types, args):
        if abi_type == "bytes":
            tail = encode_bytes(arg)
            heads.append(encode_uint256(tail_offset))
            tails.append(tail)
            tail_offset += len(tail)
        elif abi_type == "address":
            heads.append(encode_address(arg))
        elif abi_type == "bool":
            heads.append(encode_bool(arg))
        elif abi_type in ("uint256", "uint"):
            heads.append(encode_uint256(arg))
        else:
            raise ValueError(f"Unsupported ABI type: {abi_type}")
    return b"".join(heads) + b"".join(tails)


def parse_signature(signature: str) -> tuple[str, list[str]]:
    """Split ``name(type1,type2)`` into its name and argument types."""
    if "(" not in signature or not signature.endswith(")"):
        raise ValueError(f"Invalid function signature: {signature!r}")
    name, _, rest = signature.partition("(")
    inner = rest[:-1]
    types = [t.strip() for t in inner.split(",")] if inner else []
    return name, types


def encode_call(signature: str, args: Sequence[Any] = ()) -> bytes:
    """Build calldata: selector followed by the encoded arguments."""
    _, types = parse_signature(signature)
    return function_selector(signature) + encode_args(types, list(args))


# ==================== Decoding ====================

def read_word(data: bytes, start: int) -> bytes:
    """Return the 32 bytes at ``start``; the buffer must hold all of them."""
    if start < 0 or start + WORD_SIZE > len(data):
        raise SliceOutOfRangeError(
            f"Read of 32 bytes at {start} exceeds buffer of {len(data)} bytes",
            details={"start": start, "length": len(data)},
        )
    return bytes(data[start:start + WORD_SIZE])


def decode_uint256(data: bytes, start: int) -> tuple[int, int]:
    return int.from_bytes(read_word(data, start), "big"), start + WORD_SIZE


def decode_address(data: bytes, start: int) -> tuple[str, int]:
    word = read_word(data, start)
    return "0x" + word[12:].hex(), start + WORD_SIZE


def decode_bool(data: bytes, start: int) -> tuple[bool, int]:
    value, end = decode_uint256(data, start)
    return value != 0, end


def decode_bytes(data: bytes, offset: int) -> bytes:
    """Decode a length-prefixed ``bytes`` value starting at ``offset``."""
    length, start = decode_uint256(data, offset)
    if start + length > len(data):
        raise SliceOutOfRangeError(
            f"bytes value of length {length} exceeds buffer",
            details={"offset": offset, "length": length, "buffer": len(data)},
        )
    return bytes(data[start:start + length])


def decode_args(data: bytes, types: Sequence[str]) -> list[Any]:
    """Decode an argument block (without selector) into Python values."""
    values: list[Any] = []
    position = 0
    for abi_type in types:
        if abi_type == "address":
            value, position = decode_address(data, position)
        elif abi_type == "bool":
            value, position = decode_bool(data, position)
        elif abi_type in ("uint256", "uint"):
            value, position = decode_uint256(data, position)
        elif abi_type == "bytes":
            offset, position = decode_uint256(data, position)
            value = decode_bytes(data, offset)
        else:
            raise ValueError(f"Unsupported ABI type: {abi_type}")
        values.append(value)
    return values
