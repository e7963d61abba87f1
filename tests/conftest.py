"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers (Top-Down TDD):
    - api/        : API contract tests (FastAPI TestClient, in-memory store)
    - integration/: Service integration tests (real SQLite file, real event bus)
    - component/  : Component tests (mocked remote store, notifications, bus)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["WEEKEND_STORE_IN_MEMORY"] = "true"
os.environ.pop("CLOUD_STORE_URL", None)

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "api: API contract tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "tdd: Tests written alongside new features")


def pytest_collection_modifyitems(config, items):
    """Mark tests with their layer based on location"""
    for item in items:
        path = str(item.fspath)
        for layer in ("unit", "component", "integration", "api"):
            if f"{os.sep}tests{os.sep}{layer}{os.sep}" in path:
                item.add_marker(getattr(pytest.mark, layer))
        if f"{os.sep}tdd{os.sep}" in path:
            item.add_marker(pytest.mark.tdd)
