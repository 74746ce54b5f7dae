"""Secret store backends."""

from .base import SecretStore
from .doppler import DopplerSecretStore
from .memory import InMemorySecretStore

__all__ = ["SecretStore", "DopplerSecretStore", "InMemorySecretStore"]
