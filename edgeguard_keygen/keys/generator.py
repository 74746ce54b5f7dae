"""Signing key material generation."""

import base64
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from cryptography.hazmat.primitives import hashes

from ..utils.errors import GenerationError
from ..utils.timeutils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_KEY_SIZE = 32


@dataclass
class KeyPair:
    """A freshly generated signing key, before it is stored."""

    id: str
    raw_key: bytes = field(repr=False)
    encoded_key: str = field(repr=False)
    created_time: Optional[datetime]

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the raw key as hex; safe to print."""
        digest = hashes.Hash(hashes.SHA256())
        digest.update(self.raw_key)
        return digest.finalize().hex()

    def validate(self) -> None:
        """Validate with the default size limits."""
        from .validator import KeyValidator

        KeyValidator().validate(self)


def make_key_id(created_time: datetime) -> str:
    """
    Derive a key id from its creation instant.

    Ids have one-second resolution, so two keys created within the same
    second share an id.
    """
    return f"KEY_{int(created_time.timestamp())}".upper()


class KeyGenerator:
    """Generates random signing keys."""

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        random_source: Callable[[int], bytes] = secrets.token_bytes,
    ):
        """
        Initialize key generator.

        Args:
            clock: Returns the current time
            random_source: Returns N cryptographically random bytes
        """
        self.clock = clock
        self.random_source = random_source

    def generate(self, size_bytes: int = DEFAULT_KEY_SIZE) -> KeyPair:
        """
        Generate a new key.

        Args:
            size_bytes: Key length in bytes

        Returns:
            KeyPair: The generated key

        Raises:
            GenerationError: If the size is not positive or the random source fails
        """
        if not isinstance(size_bytes, int) or isinstance(size_bytes, bool) or size_bytes <= 0:
            raise GenerationError(f"Key size must be a positive number of bytes, got {size_bytes!r}")

        try:
            raw_key = self.random_source(size_bytes)
        except (OSError, NotImplementedError) as e:
            raise GenerationError(
                "Failed to generate random key",
                details=str(e),
            ) from e

        if raw_key is None or len(raw_key) != size_bytes:
            got = 0 if raw_key is None else len(raw_key)
            raise GenerationError(f"Random source returned {got} bytes, expected {size_bytes}")

        created_time = self.clock()
        key_pair = KeyPair(
            id=make_key_id(created_time),
            raw_key=bytes(raw_key),
            encoded_key=base64.b64encode(raw_key).decode("ascii"),
            created_time=created_time,
        )

        logger.debug("Generated %d-byte key %s", size_bytes, key_pair.id)
        return key_pair
