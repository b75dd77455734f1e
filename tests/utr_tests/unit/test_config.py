"""
Tests for environment-driven configuration.
"""

import importlib
import os
from unittest.mock import patch

import pytest

from utr.core import config
from utr.core.router_exceptions import ConfigurationError


@pytest.fixture
def load_config():
    """Reload the config module under a patched environment."""
    def _load(**env):
        with patch.dict(os.environ, env):
            return importlib.reload(config)

    yield _load
    importlib.reload(config)


def test_defaults(load_config):
    cfg = load_config(
        UTR_MAX_ACTIONS="",
        UTR_MAX_TOKENS_PER_ACTION="",
        UTR_MAX_PAYLOAD_BYTES="",
        UTR_ROUTER_ADDRESS="",
        UTR_METRICS_ENABLED="",
    )
    assert cfg.MAX_ACTIONS == 64
    assert cfg.MAX_TOKENS_PER_ACTION == 16
    assert cfg.MAX_PAYLOAD_BYTES == 128 * 1024
    assert cfg.ROUTER_ADDRESS == "0x8bbbd2a7bc4ef0de7a5e1a9e6b8b3dab5b0c1d2e"
    assert cfg.METRICS_ENABLED is True


def test_overrides(load_config):
    cfg = load_config(
        UTR_ENVIRONMENT="production",
        UTR_LOG_LEVEL="debug",
        UTR_MAX_ACTIONS="0x10",
        UTR_ROUTER_ADDRESS="0x" + "AA" * 20,
        UTR_METRICS_ENABLED="off",
    )
    assert cfg.ENVIRONMENT == "production"
    assert cfg.LOG_LEVEL == "DEBUG"
    assert cfg.MAX_ACTIONS == 16
    assert cfg.ROUTER_ADDRESS == "0x" + "aa" * 20
    assert cfg.METRICS_ENABLED is False


@pytest.mark.parametrize("env", [
    {"UTR_MAX_ACTIONS": "many"},
    {"UTR_MAX_ACTIONS": "0"},
    {"UTR_METRICS_ENABLED": "maybe"},
    {"UTR_ROUTER_ADDRESS": "router"},
    {"UTR_ROUTER_ADDRESS": "0x" + "zz" * 20},
    {"UTR_LOG_LEVEL": "LOUD"},
])
def test_invalid_values_raise(load_config, env):
    with pytest.raises(ConfigurationError):
        load_config(**env)


def test_malformed_router_address_fails_at_load(load_config):
    with pytest.raises(ConfigurationError, match="UTR_ROUTER_ADDRESS") as exc_info:
        load_config(UTR_ROUTER_ADDRESS="0x" + "g1" * 20)
    assert exc_info.value.details == {"env_var": "UTR_ROUTER_ADDRESS"}
