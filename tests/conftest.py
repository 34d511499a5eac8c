"""
pytest configuration for azure_login tests.

Adds src directory to Python path for imports.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from azure_login.logging.context import clear_log_context  # noqa: E402


@pytest.fixture(autouse=True)
def reset_log_context():
    """Keep log context from leaking between tests."""
    yield
    clear_log_context()
