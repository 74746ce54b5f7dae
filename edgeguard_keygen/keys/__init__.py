"""Signing key generation and lifecycle management."""

from .generator import KeyGenerator, KeyPair
from .lifecycle import KeyLifecycleManager
from .models import KeyMetadata, KeyStatus
from .storage import SigningKeyStore
from .validator import KeyValidator

__all__ = [
    "KeyGenerator",
    "KeyPair",
    "KeyLifecycleManager",
    "KeyMetadata",
    "KeyStatus",
    "KeyValidator",
    "SigningKeyStore",
]
