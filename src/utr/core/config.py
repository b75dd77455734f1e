"""
Universal Token Router Configuration

All settings come from ``UTR_*`` environment variables and are read once at
import. They govern the layers around the engine (request decoding limits,
logging, metrics, CLI defaults); execution semantics never depend on them.
"""

from __future__ import annotations

import logging
import os

from .abi import normalize_address
from .router_exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _get_int(env_var: str, default: int, minimum: int = 0) -> int:
    """Read an integer setting, rejecting malformed or too-small values."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw, 0)
    except ValueError:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var},
        ) from None
    if value < minimum:
        raise ConfigurationError(
            f"{env_var} must be >= {minimum}, got {value}",
            details={"env_var": env_var},
        )
    return value


def _get_flag(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(
        f"{env_var} must be a boolean flag, got {raw!r}",
        details={"env_var": env_var},
    )


def _get_address(env_var: str, default: str) -> str:
    raw = os.getenv(env_var, "").strip() or default
    try:
        return normalize_address(raw)
    except ValueError:
        raise ConfigurationError(
            f"{env_var} must be a 0x-prefixed 20-byte hex address, got {raw!r}",
            details={"env_var": env_var},
        ) from None


ENVIRONMENT = os.getenv("UTR_ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("UTR_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("UTR_LOG_FILE", "").strip() or None

if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    raise ConfigurationError(f"UTR_LOG_LEVEL is not a logging level: {LOG_LEVEL!r}")

# Deterministic router address used by the CLI and tests
ROUTER_ADDRESS = _get_address(
    "UTR_ROUTER_ADDRESS", "0x8bbbd2a7bc4ef0de7a5e1a9e6b8b3dab5b0c1d2e"
)

# Request decoding limits
MAX_ACTIONS = _get_int("UTR_MAX_ACTIONS", 64, minimum=1)
MAX_TOKENS_PER_ACTION = _get_int("UTR_MAX_TOKENS_PER_ACTION", 16, minimum=0)
MAX_PAYLOAD_BYTES = _get_int("UTR_MAX_PAYLOAD_BYTES", 128 * 1024, minimum=0)

METRICS_ENABLED = _get_flag("UTR_METRICS_ENABLED", True)

logger.debug(
    "Router configuration loaded",
    extra={
        "event": "config.loaded",
        "environment": ENVIRONMENT,
        "max_actions": MAX_ACTIONS,
        "metrics_enabled": METRICS_ENABLED,
    },
)
