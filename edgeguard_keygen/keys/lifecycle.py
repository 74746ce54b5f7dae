"""Signing key lifecycle: generate, list, rotate, verify and clean up."""

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..utils.errors import (
    CleanupError,
    GenerationError,
    KeyStateError,
    SecretNotFoundError,
    StoreError,
    create_error_suggestions,
)
from ..utils.timeutils import utc_now
from .generator import DEFAULT_KEY_SIZE, KeyGenerator, KeyPair, make_key_id
from .models import KeyMetadata, KeyStatus
from .storage import SigningKeyStore
from .validator import KeyValidator

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=2160)


class KeyLifecycleManager:
    """Moves keys through GENERATED -> ACTIVE -> ROTATED -> DELETED.

    Every operation is a sequence of blocking store calls with no locking and
    no rollback. Two secrets are written per key, so a failure between them
    leaves key material without metadata.
    """

    def __init__(
        self,
        key_store: SigningKeyStore,
        generator: Optional[KeyGenerator] = None,
        validator: Optional[KeyValidator] = None,
        key_size: int = DEFAULT_KEY_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize lifecycle manager.

        Args:
            key_store: Naming adapter over the secret store
            generator: Key generator (defaults to one sharing ``clock``)
            validator: Key validator (defaults to 32..64 bytes)
            key_size: Size of generated keys in bytes
            clock: Returns the current time
        """
        self.key_store = key_store
        self.clock = clock
        self.generator = generator or KeyGenerator(clock=clock)
        self.validator = validator or KeyValidator()
        self.key_size = key_size

    def generate_and_store(self) -> KeyPair:
        """
        Generate, validate and store a new active key.

        Returns:
            KeyPair: The stored key

        Raises:
            GenerationError: If key material cannot be generated
            ValidationError: If the generated key is malformed
            StoreError: If either secret cannot be written
        """
        key_pair = self.generator.generate(self.key_size)
        self.validator.validate(key_pair)

        metadata = KeyMetadata(
            id=key_pair.id,
            created_at=key_pair.created_time,
            active=True,
            version=1,
        )
        self.key_store.store_key(key_pair, metadata)

        logger.info("Stored key %s (fingerprint %s)", key_pair.id, key_pair.fingerprint[:16])
        return key_pair

    def list_keys(self) -> List[KeyStatus]:
        """
        List every key with metadata under the store's prefix.

        Metadata that cannot be parsed is logged and skipped.

        Returns:
            List[KeyStatus]: Keys ordered by creation time
        """
        statuses, skipped = self.key_store.list_metadata()
        if skipped:
            logger.warning("Skipped %d unreadable metadata entries", len(skipped))

        statuses.sort(key=lambda status: (status.created_time, status.id))
        return statuses

    def rotate_key(self, old_id: str) -> KeyPair:
        """
        Replace a key with a new active one and mark the old key rotated.

        The old key's material is left in place; only its metadata changes.

        Args:
            old_id: Id of the key being replaced

        Returns:
            KeyPair: The new key

        Raises:
            SecretNotFoundError: If the old key has no metadata
            KeyStateError: If the old key is already inactive
            StoreError: If any store call fails
        """
        old_id = old_id.upper()

        try:
            old_status = self.key_store.read_metadata(old_id)
        except SecretNotFoundError as e:
            raise SecretNotFoundError(
                f"Cannot rotate {old_id}: no metadata found",
                suggestions=create_error_suggestions("secret_not_found"),
            ) from e

        if not old_status.active:
            suggestions = create_error_suggestions("key_not_active")
            if old_status.rotated_from_id:
                suggestions.insert(0, f"{old_id} was replaced by {old_status.rotated_from_id}; rotate that key instead")
            raise KeyStateError(f"Cannot rotate {old_id}: key is not active", suggestions=suggestions)

        if make_key_id(self.clock()) == old_id:
            raise GenerationError(
                f"Cannot rotate {old_id} in the same second it was created; the new key would reuse its id"
            )

        new_key = self.generate_and_store()

        rotated = replace(
            old_status,
            active=False,
            rotated_time=self.clock(),
            rotated_from_id=new_key.id,
        )

        try:
            self.key_store.write_metadata(old_id, rotated)
        except StoreError as e:
            raise StoreError(
                f"New key {new_key.id} was stored but {old_id} could not be marked rotated",
                output=e.output,
                suggestions=[f"Run 'keygen rotate {old_id}' again or fix its metadata by hand"],
            ) from e

        logger.info("Rotated key %s -> %s", old_id, new_key.id)
        return new_key

    def find_expired(self, max_age: timedelta, statuses: Optional[List[KeyStatus]] = None) -> List[str]:
        """
        Ids of inactive keys older than ``max_age``.

        Age counts from ``last_used`` if set, else ``rotated_time``, else
        ``created_time``.
        """
        now = self.clock()
        if statuses is None:
            statuses = self.list_keys()

        return [status.id for status in statuses if not status.active and status.age(now) > max_age]

    def cleanup_old_keys(self, max_age: timedelta = DEFAULT_MAX_AGE, dry_run: bool = True) -> List[str]:
        """
        Delete inactive keys past the retention window.

        Args:
            max_age: Retention window for inactive keys
            dry_run: Only report what would be deleted

        Returns:
            List[str]: Ids that were (or, in a dry run, would be) deleted

        Raises:
            CleanupError: If a delete fails; carries the planned and deleted ids
        """
        eligible = self.find_expired(max_age)

        if dry_run or not eligible:
            logger.info("%d keys eligible for cleanup%s", len(eligible), " (dry run)" if dry_run else "")
            return eligible

        deleted = []
        for key_id in eligible:
            try:
                self.key_store.delete_key(key_id)
            except StoreError as e:
                raise CleanupError(
                    f"Failed to delete key {key_id}: {e.message}",
                    eligible=eligible,
                    deleted=deleted,
                    failed_id=key_id,
                    output=e.output,
                ) from e
            deleted.append(key_id)
            logger.info("Deleted key %s", key_id)

        return eligible

    def verify_key(self, key_id: str) -> None:
        """
        Check that a key's material is present in the store.

        Raises:
            SecretNotFoundError: If the key secret is missing or empty
        """
        key_id = key_id.upper()
        try:
            self.key_store.read_key(key_id)
        except SecretNotFoundError as e:
            raise SecretNotFoundError(
                f"Key {key_id} not found in {self.key_store.backend.describe()}",
                suggestions=create_error_suggestions("secret_not_found"),
            ) from e
