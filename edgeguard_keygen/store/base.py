"""Secret store interface."""

from abc import ABC, abstractmethod
from typing import Dict


class SecretStore(ABC):
    """A flat, string-keyed secret namespace.

    Implementations raise :class:`~edgeguard_keygen.utils.errors.StoreError`
    on any failure.
    """

    @abstractmethod
    def set_secret(self, name: str, value: str) -> None:
        """Create or overwrite a secret."""

    @abstractmethod
    def get_secret(self, name: str) -> str:
        """Return a secret's value; raises SecretNotFoundError when absent or empty."""

    @abstractmethod
    def delete_secret(self, name: str) -> None:
        """Remove a secret."""

    @abstractmethod
    def list_all_secrets(self) -> Dict[str, str]:
        """Return every secret in the namespace as a name to value mapping."""

    def describe(self) -> str:
        """Human-readable location of the namespace, for messages."""
        return type(self).__name__
