"""
Input amount resolution.

A token spec either states its amount statically or points at a word inside
the result of the most recent input call. Dynamic amounts are capped by the
declared ceiling so a quote can shrink a transfer but never grow it.
"""

from __future__ import annotations

from ..abi import decode_uint256
from ..router_exceptions import ExcessiveInputAmountError
from .types import DYNAMIC_OFFSET_MIN, TokenSpec


def slice_uint(data: bytes, offset: int) -> int:
    """
    Read the big-endian word that ends at byte ``offset`` of ``data``.

    Raises:
        SliceOutOfRangeError: If ``data`` is shorter than ``offset`` bytes
    """
    value, _ = decode_uint256(data, offset - DYNAMIC_OFFSET_MIN)
    return value


def resolve_amount(spec: TokenSpec, last_result: bytes) -> int:
    """
    Resolve the amount an input token spec moves.

    Raises:
        ExcessiveInputAmountError: If the dynamic amount exceeds ``spec.amount``
        SliceOutOfRangeError: If ``last_result`` is too short for ``spec.offset``
    """
    if not spec.is_dynamic:
        return spec.amount

    amount = slice_uint(last_result, spec.offset)
    if amount > spec.amount:
        raise ExcessiveInputAmountError(
            f"Resolved input amount {amount} exceeds ceiling {spec.amount}",
            details={
                "resolved": amount,
                "ceiling": spec.amount,
                "offset": spec.offset,
                "asset": spec.asset.contract,
            },
        )
    return amount
