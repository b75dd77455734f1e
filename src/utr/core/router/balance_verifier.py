"""
Output balance verification.

Pre-balances of every output recipient are recorded just before the output
action runs; once every action has executed the increases are checked
against the required minimums. Checking only at the very end keeps the
guarantee intact even when a callee re-enters the router.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from ..router_exceptions import InsufficientOutputAmountError
from .asset_adapter import AssetAdapter
from .types import Action, ExecutionContext

logger = logging.getLogger(__name__)


class BalanceVerifier:
    def __init__(self, adapter: AssetAdapter) -> None:
        self.adapter = adapter

    def snapshot(
        self, index: int, action: Action, context: ExecutionContext
    ) -> Dict[Tuple[int, int], int]:
        """Record pre-balances for the action's tokens with ``amount > 0``."""
        recorded: Dict[Tuple[int, int], int] = {}
        for token_index, token in enumerate(action.tokens):
            if token.amount == 0:
                continue
            key = (index, token_index)
            recorded[key] = self.adapter.balance_of(token.asset, token.recipient)
        context.pre_balances.update(recorded)
        return recorded

    def verify(self, index: int, action: Action, context: ExecutionContext) -> None:
        """
        Check every recorded token of ``action`` grew by at least its amount.

        Raises:
            InsufficientOutputAmountError: On the first token that fell short
        """
        for token_index, token in enumerate(action.tokens):
            if token.amount == 0:
                continue
            before = context.pre_balances[(index, token_index)]
            after = self.adapter.balance_of(token.asset, token.recipient)
            if after - before < token.amount:
                logger.warning(
                    "Output balance check failed",
                    extra={
                        "event": "router.output_check_failed",
                        "action_index": index,
                        "token_index": token_index,
                        "recipient": token.recipient[:10],
                        "required": token.amount,
                        "observed": after - before,
                    },
                )
                raise InsufficientOutputAmountError(
                    f"Output {index}.{token_index} increased by {after - before}, "
                    f"required {token.amount}",
                    details={
                        "action_index": index,
                        "token_index": token_index,
                        "before": before,
                        "after": after,
                        "required": token.amount,
                    },
                )
