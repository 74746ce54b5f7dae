"""Tests for the Doppler CLI secret store."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from edgeguard_keygen.store import DopplerSecretStore, InMemorySecretStore
from edgeguard_keygen.utils.errors import SecretNotFoundError, StoreError


def completed(returncode=0, stdout="", stderr=""):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestDopplerSecretStore:
    """Test the subprocess contract with the doppler CLI."""

    def setup_method(self):
        """Setup test environment."""
        self.store = DopplerSecretStore(project="edge-guard", config="prd")

    def test_set_secret_command(self):
        """set uppercases the name and scopes to project/config."""
        with patch("subprocess.run", return_value=completed()) as mock_run:
            self.store.set_secret("jwt_signing_key_key_1", "c2VjcmV0")

        args, kwargs = mock_run.call_args
        assert args[0] == [
            "doppler", "secrets", "set", "JWT_SIGNING_KEY_KEY_1", "c2VjcmV0",
            "--project", "edge-guard", "--config", "prd",
        ]
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["text"] is True

    def test_set_secret_failure_carries_output(self):
        """Non-zero exit raises StoreError with the combined output."""
        with patch("subprocess.run", return_value=completed(1, stdout="Doppler Error: Unauthorized\n")):
            with pytest.raises(StoreError) as exc_info:
                self.store.set_secret("NAME", "value")

        assert exc_info.value.output == "Doppler Error: Unauthorized"
        assert "value" not in exc_info.value.message
        assert exc_info.value.suggestions

    def test_get_secret_plain(self):
        """get passes --plain and strips the trailing newline."""
        with patch("subprocess.run", return_value=completed(stdout="abc=\n")) as mock_run:
            value = self.store.get_secret("jwt_signing_key_key_1")

        assert value == "abc="
        assert mock_run.call_args[0][0] == [
            "doppler", "secrets", "get", "JWT_SIGNING_KEY_KEY_1",
            "--project", "edge-guard", "--config", "prd", "--plain",
        ]

    def test_get_secret_empty_is_not_found(self):
        """Empty output is treated as not found."""
        with patch("subprocess.run", return_value=completed(stdout="")):
            with pytest.raises(SecretNotFoundError):
                self.store.get_secret("MISSING")

    def test_get_secret_failure(self):
        """CLI errors on get surface stderr."""
        with patch("subprocess.run", return_value=completed(1, stderr="Could not find requested secret")):
            with pytest.raises(StoreError) as exc_info:
                self.store.get_secret("MISSING")

        assert "Could not find" in exc_info.value.output

    def test_delete_secret_command(self):
        """delete skips the interactive confirmation."""
        with patch("subprocess.run", return_value=completed()) as mock_run:
            self.store.delete_secret("name")

        assert mock_run.call_args[0][0] == [
            "doppler", "secrets", "delete", "NAME",
            "--project", "edge-guard", "--config", "prd", "--yes",
        ]

    def test_delete_missing_secret_is_not_found(self):
        """doppler's missing-secret error maps to SecretNotFoundError."""
        output = "Doppler Error: Could not find requested secret: NAME\n"
        with patch("subprocess.run", return_value=completed(1, stdout=output)):
            with pytest.raises(SecretNotFoundError) as exc_info:
                self.store.delete_secret("name")

        assert "Could not find requested secret" in exc_info.value.output

    def test_list_all_secrets(self):
        """download output is parsed as a flat mapping."""
        payload = '{"JWT_SIGNING_KEY_KEY_1": "abc", "DOPPLER_PROJECT": "edge-guard"}'
        with patch("subprocess.run", return_value=completed(stdout=payload)) as mock_run:
            secrets = self.store.list_all_secrets()

        assert secrets == {"JWT_SIGNING_KEY_KEY_1": "abc", "DOPPLER_PROJECT": "edge-guard"}
        assert mock_run.call_args[0][0] == [
            "doppler", "secrets", "download",
            "--project", "edge-guard", "--config", "prd",
            "--format", "json", "--no-file",
        ]

    @pytest.mark.parametrize("payload", ["not json", '["a"]', '{"A": 1}'])
    def test_list_all_secrets_unparseable(self, payload):
        """Anything but a string-to-string object is an error."""
        with patch("subprocess.run", return_value=completed(stdout=payload)):
            with pytest.raises(StoreError):
                self.store.list_all_secrets()

    def test_missing_binary(self):
        """A missing doppler binary becomes a StoreError."""
        with patch("subprocess.run", side_effect=FileNotFoundError("doppler")):
            with pytest.raises(StoreError) as exc_info:
                self.store.list_all_secrets()

        assert "not found" in exc_info.value.message
        assert any("Install" in s for s in exc_info.value.suggestions)

    def test_timeout(self):
        """Timeouts are passed through and reported."""
        store = DopplerSecretStore(project="p", config="c", binary="/opt/doppler", timeout=5)

        with patch(
            "subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="doppler", timeout=5),
        ) as mock_run:
            with pytest.raises(StoreError) as exc_info:
                store.get_secret("NAME")

        assert mock_run.call_args[1]["timeout"] == 5
        assert mock_run.call_args[0][0][0] == "/opt/doppler"
        assert "timed out" in exc_info.value.message

    def test_describe(self):
        """describe names the project and config."""
        assert self.store.describe() == "doppler edge-guard/prd"


class TestInMemorySecretStore:
    """Test the in-memory backend."""

    def test_round_trip(self):
        """Secrets are stored under upper-case names."""
        store = InMemorySecretStore()
        store.set_secret("name", "value")

        assert store.get_secret("NAME") == "value"
        assert store.list_all_secrets() == {"NAME": "value"}

        store.delete_secret("name")
        assert store.list_all_secrets() == {}

    def test_missing_secret(self):
        """Missing secrets raise SecretNotFoundError."""
        store = InMemorySecretStore()

        with pytest.raises(SecretNotFoundError):
            store.get_secret("NOPE")
        with pytest.raises(SecretNotFoundError):
            store.delete_secret("NOPE")

    def test_injected_failure(self):
        """fail_on targets an operation and optionally a name."""
        store = InMemorySecretStore({"A": "1", "B": "2"})
        store.fail_on("delete", "b")

        store.delete_secret("A")
        with pytest.raises(StoreError):
            store.delete_secret("B")
        assert ("delete", "B") in store.calls
