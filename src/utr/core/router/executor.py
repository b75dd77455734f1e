"""
Universal Token Router action-list executor.

Processes an ordered list of actions in a single atomic invocation:

1. Execution pass, strictly in order. Input actions optionally call their
   target to obtain a result buffer, resolve each token amount (static or
   read from that buffer) and pull the tokens from the caller. Output
   actions record their recipients' balances, then call their target with
   the carried native value and the placeholder-substituted payload.
2. Verification pass over every output action's minimum balance increases.
3. Refund of the router's whole remaining native balance to the caller.

The invocation runs inside one WorldState transaction: any error raised at
any point restores every balance and contract storage, so either every
assertion holds or nothing happened.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Sequence, Tuple

from .. import config, router_metrics
from ..abi import UINT256_MAX, normalize_address
from ..router_exceptions import (
    CallFailedError,
    InvalidActionError,
    get_error_context,
    revert_reason,
)
from ..state import WorldState
from .amount_resolver import resolve_amount
from .asset_adapter import AssetAdapter
from .balance_verifier import BalanceVerifier
from .placeholder import substitute_placeholder
from .types import Action, ActionKind, ExecutionContext, ExecutionReceipt

logger = logging.getLogger(__name__)

class UniversalTokenRouter:
    """Executes action lists against a WorldState on behalf of callers."""

    def __init__(self, state: WorldState, address: Optional[str] = None) -> None:
        self.state = state
        self.address = normalize_address(address or config.ROUTER_ADDRESS)
        self.adapter = AssetAdapter(state, self.address)
        self.verifier = BalanceVerifier(self.adapter)

    def execute(
        self, caller: str, actions: Iterable[Action], value: int = 0
    ) -> ExecutionReceipt:
        """
        Run ``actions`` atomically for ``caller``, who attaches ``value``
        native units to the invocation.

        Returns:
            ExecutionReceipt describing the successful invocation

        Raises:
            ExcessiveInputAmountError: A dynamic input amount exceeded its ceiling
            InsufficientOutputAmountError: An output balance grew too little
            InvalidAssetClassError: An asset class was not recognised
            SliceOutOfRangeError: A dynamic offset pointed past the result buffer
            CallFailedError: A mandatory output call failed
            RouterError: Any other failure from an asset or input call; other
                exceptions from callees propagate unchanged after rollback
        """
        caller = normalize_address(caller)
        actions = self._validate(actions, value)
        started = time.perf_counter()

        try:
            with self.state.transaction():
                receipt = self._execute(caller, actions, value)
        except Exception as exc:
            reason = revert_reason(exc)
            error_context = get_error_context(exc)
            error_context.setdefault("revert_reason", reason)
            router_metrics.record_execution("reverted", time.perf_counter() - started)
            router_metrics.record_revert(reason)
            logger.warning(
                "Router execution reverted",
                extra={
                    "event": "router.reverted",
                    "caller": caller[:10],
                    "actions": len(actions),
                    **error_context,
                },
            )
            raise

        router_metrics.record_execution("success", time.perf_counter() - started)
        router_metrics.record_refund(receipt.refunded)
        logger.info(
            "Router execution completed",
            extra={
                "event": "router.executed",
                "caller": caller[:10],
                "actions": len(actions),
                "optional_failures": len(receipt.optional_failures),
                "refunded": receipt.refunded,
            },
        )
        return receipt

    # Alias matching the on-chain entry point name
    exec = execute

    # ==================== Passes ====================

    def _execute(
        self, caller: str, actions: Sequence[Action], value: int
    ) -> ExecutionReceipt:
        self.state.transfer_native(caller, self.address, value)

        context = ExecutionContext()
        failures: List[Tuple[int, str]] = []

        for index, action in enumerate(actions):
            router_metrics.record_action(action.kind.name)
            if action.kind is ActionKind.INPUT:
                self._run_input(caller, action, context)
                continue
            failure = self._run_output(index, action, context)
            if failure is not None:
                failures.append((index, failure))

        for index, action in enumerate(actions):
            if action.kind.is_output:
                self.verifier.verify(index, action, context)

        refunded = self.state.native_balance(self.address)
        if refunded:
            self.state.transfer_native(self.address, caller, refunded)

        return ExecutionReceipt(
            caller=caller,
            actions_executed=len(actions),
            optional_failures=tuple(failures),
            refunded=refunded,
            last_result=context.last_result,
        )

    def _run_input(self, caller: str, action: Action, context: ExecutionContext) -> None:
        if action.has_call:
            context.last_result = self.state.call(self.address, action.target, 0, action.payload)

        for token in action.tokens:
            amount = resolve_amount(token, context.last_result)
            if token.is_deferred_native:
                context.carried_native = amount
                continue
            self.adapter.transfer(token.asset, caller, token.recipient, amount)

    def _run_output(
        self, index: int, action: Action, context: ExecutionContext
    ) -> Optional[str]:
        """Run an output action; returns the failure reason of a tolerated call."""
        self.verifier.snapshot(index, action, context)
        if not action.has_call:
            return None

        payload = substitute_placeholder(action.payload, context.last_result)
        value = context.take_carried_native()
        try:
            self.state.call(self.address, action.target, value, payload)
        except Exception as exc:
            reason = revert_reason(exc)
            if action.kind is ActionKind.OUTPUT_MANDATORY:
                raise CallFailedError(
                    reason,
                    target=action.target,
                    action_index=index,
                    details={"callee_error": type(exc).__name__},
                ) from exc

            router_metrics.record_optional_failure()
            logger.warning(
                "Optional output call failed",
                extra={
                    "event": "router.optional_call_failed",
                    "action_index": index,
                    "target": action.target[:10],
                    **get_error_context(exc),
                },
            )
            return reason
        return None

    # ==================== Validation ====================

    def _validate(self, actions: Iterable[Action], value: int) -> Tuple[Action, ...]:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT256_MAX:
            raise InvalidActionError(f"Attached value out of uint256 range: {value!r}")
        actions = tuple(actions)
        for index, action in enumerate(actions):
            if not isinstance(action, Action):
                raise InvalidActionError(
                    f"Action {index} is {type(action).__name__}, expected Action",
                    details={"action_index": index},
                )
        return actions
