# doremi/conftest.py
import os
import sys
from pathlib import Path

import pytest

# Services under test never touch the developer's store directory
os.environ.setdefault("STORE_BACKEND", "memory")

# Add repository root to PYTHONPATH
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture(autouse=True)
def reset_metrics():
    """Each test starts with empty counters."""
    from doremi.core.metrics import METRICS

    METRICS.reset()
    yield
    METRICS.reset()


@pytest.fixture
def store():
    """Fresh in-memory keyed store."""
    from doremi.features.store.keyed_store import InMemoryKeyedStore

    return InMemoryKeyedStore()


@pytest.fixture
def services(store):
    """Publishing services wired around the in-memory store."""
    from doremi.services import build_services

    return build_services(store)


@pytest.fixture
def client(services):
    """TestClient for an app owning `services`."""
    from fastapi.testclient import TestClient
    from doremi.main import create_app

    return TestClient(create_app(services))
