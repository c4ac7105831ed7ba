"""Root test configuration: environment isolation and cleanup of runtime artifacts"""

import os
from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["mdenrich.db", "test.db"]

# Variables read by load_config/configure_logging that must not leak in from the host
_HOST_ENV = ["OPENAI_API_KEY", "ANTHROPIC_API_KEY", "APP_ENV"]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Strip MDENRICH_* and provider credentials so tests never reach a real service."""
    for name in list(os.environ):
        if name.startswith("MDENRICH_") or name in _HOST_ENV:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()
