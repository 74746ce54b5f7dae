"""Tests for the signing key naming adapter."""

import json
import logging
from datetime import datetime, timezone

import pytest

from edgeguard_keygen.keys import KeyGenerator, KeyMetadata, SigningKeyStore
from edgeguard_keygen.store import InMemorySecretStore
from edgeguard_keygen.utils.errors import ConfigurationError, SecretNotFoundError, StoreError

CREATED = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestSigningKeyStore:
    """Test secret naming and storage of key pairs."""

    def setup_method(self):
        """Setup test environment."""
        self.backend = InMemorySecretStore()
        self.store = SigningKeyStore(self.backend)
        self.key_pair = KeyGenerator(clock=lambda: CREATED).generate(32)
        self.metadata = KeyMetadata(id=self.key_pair.id, created_at=CREATED)

    def test_secret_names(self):
        """Names follow {PREFIX}_{ID} and {PREFIX}_{ID}_METADATA, upper-case."""
        assert self.store.key_secret_name("key_1") == "JWT_SIGNING_KEY_KEY_1"
        assert self.store.metadata_secret_name("key_1") == "JWT_SIGNING_KEY_KEY_1_METADATA"

    def test_prefix_is_configurable(self):
        """The prefix comes from the constructor."""
        store = SigningKeyStore(self.backend, key_prefix="api_signing")

        assert store.key_secret_name("KEY_1") == "API_SIGNING_KEY_1"
        assert store.is_metadata_secret("API_SIGNING_KEY_1_METADATA")
        assert not store.is_metadata_secret("JWT_SIGNING_KEY_KEY_1_METADATA")

    def test_empty_prefix_rejected(self):
        """A prefix is required."""
        with pytest.raises(ConfigurationError):
            SigningKeyStore(self.backend, key_prefix="")

    def test_store_key_writes_both_secrets(self):
        """Key material and metadata are written in that order."""
        self.store.store_key(self.key_pair, self.metadata)

        key_name = f"JWT_SIGNING_KEY_{self.key_pair.id}"
        assert self.backend.secrets[key_name] == self.key_pair.encoded_key
        assert json.loads(self.backend.secrets[f"{key_name}_METADATA"])["active"] is True
        assert [op for op, _ in self.backend.calls] == ["set", "set"]
        assert self.backend.calls[0][1] == key_name

    def test_metadata_failure_leaves_orphaned_key(self, caplog):
        """A failed metadata write leaves key material without metadata."""
        self.backend.fail_on("set", f"JWT_SIGNING_KEY_{self.key_pair.id}_METADATA")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(StoreError) as exc_info:
                self.store.store_key(self.key_pair, self.metadata)

        assert "metadata" in exc_info.value.message
        assert f"JWT_SIGNING_KEY_{self.key_pair.id}" in self.backend.secrets
        assert f"JWT_SIGNING_KEY_{self.key_pair.id}_METADATA" not in self.backend.secrets
        assert "orphaned" in caplog.text

    def test_key_failure_writes_nothing(self):
        """If the key write fails, metadata is not attempted."""
        self.backend.fail_on("set", f"JWT_SIGNING_KEY_{self.key_pair.id}")

        with pytest.raises(StoreError):
            self.store.store_key(self.key_pair, self.metadata)

        assert self.backend.secrets == {}
        assert len(self.backend.calls) == 1

    def test_read_metadata_missing(self):
        """Missing metadata raises SecretNotFoundError."""
        with pytest.raises(SecretNotFoundError):
            self.store.read_metadata("KEY_404")

    def test_read_metadata_corrupt(self):
        """Corrupt metadata raises StoreError naming the secret."""
        self.backend.secrets["JWT_SIGNING_KEY_KEY_1_METADATA"] = "{broken"

        with pytest.raises(StoreError) as exc_info:
            self.store.read_metadata("KEY_1")

        assert "JWT_SIGNING_KEY_KEY_1_METADATA" in exc_info.value.message

    def test_list_metadata_filters_and_skips(self, caplog):
        """Only prefixed metadata secrets are parsed; bad entries are skipped."""
        self.store.store_key(self.key_pair, self.metadata)
        self.backend.secrets["JWT_SIGNING_KEY_KEY_9_METADATA"] = "not json"
        self.backend.secrets["OTHER_KEY_1_METADATA"] = "{}"
        self.backend.secrets["DATABASE_URL"] = "postgres://"

        with caplog.at_level(logging.WARNING):
            statuses, skipped = self.store.list_metadata()

        assert [s.id for s in statuses] == [self.key_pair.id]
        assert list(skipped) == ["JWT_SIGNING_KEY_KEY_9_METADATA"]
        assert "Skipping unparseable key metadata" in caplog.text

    def test_delete_key_removes_both(self):
        """delete_key removes key then metadata."""
        self.store.store_key(self.key_pair, self.metadata)

        self.store.delete_key(self.key_pair.id)

        assert self.backend.secrets == {}

    def test_delete_key_with_missing_material(self, caplog):
        """Metadata is still removed when the key secret is already gone."""
        self.store.store_key(self.key_pair, self.metadata)
        del self.backend.secrets[f"JWT_SIGNING_KEY_{self.key_pair.id}"]

        with caplog.at_level(logging.WARNING):
            self.store.delete_key(self.key_pair.id)

        assert self.backend.secrets == {}
        assert "already deleted" in caplog.text

    def test_delete_key_missing_metadata_raises(self):
        """A missing metadata secret is still reported."""
        self.backend.secrets[f"JWT_SIGNING_KEY_{self.key_pair.id}"] = self.key_pair.encoded_key

        with pytest.raises(SecretNotFoundError):
            self.store.delete_key(self.key_pair.id)
