"""Structural checks on generated signing keys."""

import base64
import binascii

from ..utils.errors import ValidationError
from ..utils.timeutils import is_zero_time

MIN_KEY_SIZE = 32
MAX_KEY_SIZE = 64


class KeyValidator:
    """Validates a generated key before it is trusted."""

    def __init__(self, min_key_size: int = MIN_KEY_SIZE, max_key_size: int = MAX_KEY_SIZE):
        self.min_key_size = min_key_size
        self.max_key_size = max_key_size
        self.key_format = "base64"

    def validate(self, key_pair) -> None:
        """
        Check a key pair, stopping at the first failed rule.

        Args:
            key_pair: KeyPair to check

        Raises:
            ValidationError: With the failing field and a message
        """
        size = len(key_pair.raw_key)

        if size < self.min_key_size:
            raise ValidationError(
                "key_size",
                f"key size {size} is below minimum required size {self.min_key_size}",
            )

        if size > self.max_key_size:
            raise ValidationError(
                "key_size",
                f"key size {size} exceeds maximum allowed size {self.max_key_size}",
            )

        try:
            base64.b64decode(key_pair.encoded_key, validate=True)
        except (binascii.Error, ValueError, TypeError):
            raise ValidationError("encoding", "invalid base64 encoding")

        if not key_pair.id:
            raise ValidationError("key_id", "key ID cannot be empty")

        if is_zero_time(key_pair.created_time):
            raise ValidationError("created_at", "creation timestamp is not set")
