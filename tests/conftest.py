"""Root pytest configuration for badbits-publisher tests."""
import pytest

from badbits_publisher.settings import Settings
from badbits_publisher.storage.memory import MemorySegmentStore

from .fakes.fake_clock import FakeClock
from .storage.fakes.flaky_store import FlakyStore

_ENV_VARS = (
    "BADBITS_DENYLIST_URL",
    "BADBITS_HTTP_TIMEOUT",
    "BADBITS_HTTP_RETRY",
    "BADBITS_KV_PREFIX",
    "BADBITS_MAX_VALUE_SIZE",
    "BADBITS_GRACE_PERIOD",
    "BADBITS_INTERVAL",
    "BADBITS_WRITE_CONCURRENCY",
    "BADBITS_STORE",
    "BADBITS_STORE_PATH",
    "BADBITS_AZURE_CONTAINER",
    "BADBITS_AZURE_BLOB_ENDPOINT",
    "AZURE_STORAGE_CONNECTION_STRING",
    "AZURE_STORAGE_ACCOUNT",
    "AZURE_STORAGE_KEY",
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Isolate tests from the developer's environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BADBITS_STORE", "memory")


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(store_backend="memory", kv_prefix="test", grace_period_s=0)


@pytest.fixture
def store():
    """Small-ceiling in-memory store so segmentation kicks in with few hashes."""
    return MemorySegmentStore(max_value_size=64)


@pytest.fixture
def flaky_store():
    """Store with injectable failures."""
    return FlakyStore(max_value_size=64)


@pytest.fixture
def clock():
    """Fake clock starting at a fixed UTC time."""
    return FakeClock()
