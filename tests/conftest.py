"""
Test configuration shared by every UTR test package
"""
import sys
from pathlib import Path

# Allow running the suite from a checkout without installing the package
project_root = Path(__file__).parent.parent
src_path = project_root / "src"

sys.path.insert(0, str(project_root))
sys.path.insert(0, str(src_path))

import pytest


@pytest.fixture(autouse=True)
def _router_log_level(caplog):
    """Capture router logs at DEBUG so tests can assert on structured events."""
    caplog.set_level("DEBUG", logger="utr")
    yield
