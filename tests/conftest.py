"""Pytest configuration and shared fixtures."""

import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from edgeguard_keygen.keys import KeyLifecycleManager, SigningKeyStore
from edgeguard_keygen.store import InMemorySecretStore


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def temp_directory():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    # Cleanup
    import shutil
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolate_filesystem(temp_directory, monkeypatch):
    """Isolate filesystem operations and Doppler env vars."""
    monkeypatch.chdir(temp_directory)
    for var in ("DOPPLER_PROJECT", "DOPPLER_CONFIG", "KEYGEN_KEY_PREFIX"):
        monkeypatch.delenv(var, raising=False)
    return temp_directory


@pytest.fixture
def clock():
    """Fake clock starting 2024-01-01 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def memory_store():
    """Empty in-memory secret store."""
    return InMemorySecretStore()


@pytest.fixture
def key_store(memory_store):
    """Signing key store over the in-memory backend."""
    return SigningKeyStore(memory_store, key_prefix="JWT_SIGNING_KEY")


@pytest.fixture
def manager(key_store, clock):
    """Lifecycle manager using the fake clock."""
    return KeyLifecycleManager(key_store, clock=clock)


@pytest.fixture
def sample_settings_yaml():
    """Valid keygen.yml contents."""
    return """
keygen:
  project: edge-guard
  config: prd
  key_prefix: JWT_SIGNING_KEY
  key_size: 48
  max_age: 90d
  doppler_binary: /usr/local/bin/doppler
  timeout: 30
"""
