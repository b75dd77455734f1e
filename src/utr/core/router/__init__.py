"""
Action-execution engine of the Universal Token Router.

- Action List Executor (UniversalTokenRouter)
- Amount Resolver and Placeholder Substitutor
- Asset Adapter and Balance Verifier
"""

from .amount_resolver import resolve_amount, slice_uint
from .asset_adapter import AssetAdapter
from .balance_verifier import BalanceVerifier
from .executor import UniversalTokenRouter
from .placeholder import has_placeholder, substitute_placeholder
from .types import (
    CALL_RESULT_PLACEHOLDER,
    ID_721_ALL,
    Action,
    ActionKind,
    AssetClass,
    AssetRef,
    ExecutionContext,
    ExecutionReceipt,
    TokenSpec,
)

__all__ = [
    "Action",
    "ActionKind",
    "AssetAdapter",
    "AssetClass",
    "AssetRef",
    "BalanceVerifier",
    "CALL_RESULT_PLACEHOLDER",
    "ExecutionContext",
    "ExecutionReceipt",
    "ID_721_ALL",
    "TokenSpec",
    "UniversalTokenRouter",
    "has_placeholder",
    "resolve_amount",
    "slice_uint",
    "substitute_placeholder",
]
