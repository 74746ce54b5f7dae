"""Maps signing keys onto secret names in a secret store."""

import logging
from typing import Dict, List, Tuple

from ..store.base import SecretStore
from ..utils.errors import ConfigurationError, SecretNotFoundError, StoreError
from .generator import KeyPair
from .models import KeyMetadata, KeyStatus

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "JWT_SIGNING_KEY"
METADATA_SUFFIX = "_METADATA"


class SigningKeyStore:
    """Stores each key as two secrets: ``{PREFIX}_{ID}`` and ``{PREFIX}_{ID}_METADATA``."""

    def __init__(self, backend: SecretStore, key_prefix: str = DEFAULT_KEY_PREFIX):
        """
        Initialize key store.

        Args:
            backend: Secret store holding the namespace
            key_prefix: Prefix for every secret this store writes
        """
        if not key_prefix:
            raise ConfigurationError("Key prefix cannot be empty")

        self.backend = backend
        self.key_prefix = key_prefix.upper()

    def key_secret_name(self, key_id: str) -> str:
        return f"{self.key_prefix}_{key_id}".upper()

    def metadata_secret_name(self, key_id: str) -> str:
        return f"{self.key_prefix}_{key_id}{METADATA_SUFFIX}".upper()

    def is_metadata_secret(self, name: str) -> bool:
        name = name.upper()
        return name.startswith(f"{self.key_prefix}_") and name.endswith(METADATA_SUFFIX)

    def store_key(self, key_pair: KeyPair, metadata: KeyMetadata) -> None:
        """
        Write key material, then its metadata.

        The two writes are independent. If the metadata write fails the key
        secret is left behind without metadata and the error is raised.
        """
        key_name = self.key_secret_name(key_pair.id)
        try:
            self.backend.set_secret(key_name, key_pair.encoded_key)
        except StoreError as e:
            raise StoreError(f"Failed to store key {key_pair.id}: {e.message}", output=e.output) from e

        try:
            self.backend.set_secret(self.metadata_secret_name(key_pair.id), metadata.to_json())
        except StoreError as e:
            logger.error(
                "Key secret %s was written but its metadata was not; it is now orphaned",
                key_name,
            )
            raise StoreError(
                f"Failed to store metadata for key {key_pair.id}: {e.message}",
                output=e.output,
                suggestions=[f"Delete the orphaned secret {key_name} or retry 'keygen generate'"],
            ) from e

    def read_key(self, key_id: str) -> str:
        return self.backend.get_secret(self.key_secret_name(key_id))

    def read_metadata(self, key_id: str) -> KeyStatus:
        """
        Load a key's metadata.

        Raises:
            SecretNotFoundError: If the metadata secret is missing
            StoreError: If it cannot be parsed
        """
        name = self.metadata_secret_name(key_id)
        value = self.backend.get_secret(name)
        try:
            return KeyStatus.from_json(value)
        except ValueError as e:
            raise StoreError(f"Metadata secret {name} is not valid key metadata", output=str(e)) from e

    def write_metadata(self, key_id: str, status: KeyStatus) -> None:
        self.backend.set_secret(self.metadata_secret_name(key_id), status.to_json())

    def delete_key(self, key_id: str) -> None:
        """
        Delete key material, then metadata.

        Key material that is already gone is skipped, leaving only the
        metadata to remove.
        """
        key_name = self.key_secret_name(key_id)
        try:
            self.backend.delete_secret(key_name)
        except SecretNotFoundError:
            logger.warning("Key secret %s was already deleted; removing its metadata", key_name)
        self.backend.delete_secret(self.metadata_secret_name(key_id))

    def list_metadata(self) -> Tuple[List[KeyStatus], Dict[str, str]]:
        """
        Parse every metadata secret in the namespace.

        Returns:
            Tuple of the parsed statuses and a mapping of secret name to parse
            error for entries that were skipped
        """
        statuses = []
        skipped = {}

        for name, value in self.backend.list_all_secrets().items():
            if not self.is_metadata_secret(name):
                continue
            try:
                statuses.append(KeyStatus.from_json(value))
            except ValueError as e:
                logger.warning("Skipping unparseable key metadata %s: %s", name, e)
                skipped[name] = str(e)

        return statuses, skipped
