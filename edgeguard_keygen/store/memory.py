"""In-memory secret store for tests and local experiments."""

from typing import Dict, List, Optional, Set, Tuple

from ..utils.errors import SecretNotFoundError, StoreError
from .base import SecretStore


class InMemorySecretStore(SecretStore):
    """Keeps secrets in a dict; names are upper-cased like the real backend."""

    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self.secrets: Dict[str, str] = {k.upper(): v for k, v in (secrets or {}).items()}
        self.calls: List[Tuple[str, str]] = []
        self._failures: Set[Tuple[str, Optional[str]]] = set()

    def fail_on(self, operation: str, name: Optional[str] = None) -> None:
        """
        Make an operation raise StoreError.

        Args:
            operation: One of ``set``, ``get``, ``delete``, ``list``
            name: Only fail for this secret name (None fails every call)
        """
        self._failures.add((operation, name.upper() if name else None))

    def clear_failures(self) -> None:
        """Remove every failure added with fail_on."""
        self._failures.clear()

    def _check(self, operation: str, name: Optional[str] = None) -> None:
        self.calls.append((operation, name or ""))
        if (operation, None) in self._failures or (operation, name) in self._failures:
            raise StoreError(f"Injected failure: {operation} {name or ''}".strip(), output="injected")

    def set_secret(self, name: str, value: str) -> None:
        name = name.upper()
        self._check("set", name)
        self.secrets[name] = value

    def get_secret(self, name: str) -> str:
        name = name.upper()
        self._check("get", name)
        value = self.secrets.get(name)
        if not value:
            raise SecretNotFoundError(f"Secret {name} not found in {self.describe()}")
        return value

    def delete_secret(self, name: str) -> None:
        name = name.upper()
        self._check("delete", name)
        if name not in self.secrets:
            raise SecretNotFoundError(f"Secret {name} not found in {self.describe()}")
        del self.secrets[name]

    def list_all_secrets(self) -> Dict[str, str]:
        self._check("list")
        return dict(self.secrets)

    def describe(self) -> str:
        return "memory"
