import os
import sys

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from blackboard import Blackboard  # noqa: E402
from blackboard.config import ENV_OVERRIDES  # noqa: E402


@pytest.fixture
def blackboard_dir(tmp_path):
    directory = tmp_path / "blackboard"
    directory.mkdir()
    return directory


@pytest.fixture
def bb(blackboard_dir):
    return Blackboard(blackboard_dir, timeout=5, poll_interval=0.01)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove BLACKBOARD_* overrides inherited from the calling shell."""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def leftovers(blackboard_dir):
    """Return the transient private files an operation failed to clean up."""

    def _leftovers():
        return sorted(p.name for p in blackboard_dir.iterdir() if p.name.startswith("."))

    return _leftovers
