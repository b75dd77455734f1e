"""
Router-specific exception hierarchy.

Provides typed exceptions for router operations so callers can tell
validation failures, contract failures and protocol reverts apart while
still catching everything through RouterError.

Revert reasons carried by RevertError subclasses are stable strings and
form part of the router's external interface.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


# Stable revert reasons
EXCESSIVE_INPUT_AMOUNT = "EXCESSIVE_INPUT_AMOUNT"
INSUFFICIENT_OUTPUT_AMOUNT = "INSUFFICIENT_OUTPUT_AMOUNT"
INVALID_ASSET_CLASS = "INVALID_ASSET_CLASS"
SLICE_OUT_OF_RANGE = "SLICE_OUT_OF_RANGE"


class RouterError(Exception):
    """Base exception for all router-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(RouterError):
    """Raised when router input fails validation rules."""
    pass


class InvalidActionError(ValidationError):
    """Raised when an action or token spec is structurally invalid."""
    pass


class InsufficientBalanceError(ValidationError):
    """Raised when an account lacks native balance for a transfer."""
    pass


# ==================== Smart Contract & VM Errors ====================


class VMError(RouterError):
    """Raised when contract execution fails."""
    pass


class VMExecutionError(VMError):
    """Raised by asset and application contracts when a call fails."""
    pass


class RevertError(VMError):
    """Raised when the router reverts with a stable, string-tagged reason."""

    default_reason: str = ""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason or self.default_reason or message


class ExcessiveInputAmountError(RevertError):
    """Dynamically resolved input amount exceeded its declared ceiling."""
    default_reason = EXCESSIVE_INPUT_AMOUNT


class InsufficientOutputAmountError(RevertError):
    """Observed balance increase fell short of the required minimum."""
    default_reason = INSUFFICIENT_OUTPUT_AMOUNT


class InvalidAssetClassError(RevertError):
    """Unrecognised asset class tag in a transfer or balance query."""
    default_reason = INVALID_ASSET_CLASS


class SliceOutOfRangeError(RevertError):
    """A word read ran past the end of a byte buffer."""
    default_reason = SLICE_OUT_OF_RANGE


class CallFailedError(RevertError):
    """A mandatory output call failed; ``reason`` is the callee's message."""

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        action_index: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, reason=message, **kwargs)
        self.target = target
        self.action_index = action_index


# ==================== Configuration Errors ====================


class ConfigurationError(RouterError):
    """Raised when router configuration is invalid."""
    recoverable = False


# ==================== Utility Functions ====================


def revert_reason(exc: BaseException) -> str:
    """Return the revert reason a caller would observe for ``exc``."""
    if isinstance(exc, RevertError):
        return exc.reason
    if isinstance(exc, RouterError):
        return exc.message
    return str(exc) or type(exc).__name__


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the error is recoverable and the operation can be retried
    """
    if isinstance(exc, RouterError):
        return exc.recoverable
    return isinstance(exc, (ConnectionError, TimeoutError))


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, RouterError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, RevertError):
        context["revert_reason"] = exc.reason

    if isinstance(exc, CallFailedError):
        if exc.target is not None:
            context["target"] = exc.target
        if exc.action_index is not None:
            context["action_index"] = exc.action_index

    return context
