"""Doppler-backed secret store driven through the ``doppler`` CLI."""

import json
import logging
import subprocess
from typing import Dict, List, Optional

from ..utils.errors import SecretNotFoundError, StoreError, create_error_suggestions
from .base import SecretStore

logger = logging.getLogger(__name__)

# Printed by the doppler CLI when a named secret does not exist
SECRET_NOT_FOUND_MARKER = "Could not find requested secret"


class DopplerSecretStore(SecretStore):
    """Reads and writes secrets in one Doppler project/config."""

    def __init__(
        self,
        project: str,
        config: str,
        binary: str = "doppler",
        timeout: Optional[float] = None,
    ):
        """
        Initialize Doppler store.

        Args:
            project: Doppler project name
            config: Doppler config name (e.g. dev, stg, prd)
            binary: Path or name of the doppler executable
            timeout: Seconds to wait for each CLI call (None waits forever)
        """
        self.project = project
        self.config = config
        self.binary = binary
        self.timeout = timeout

    def describe(self) -> str:
        return f"doppler {self.project}/{self.config}"

    def _scope_args(self) -> List[str]:
        return ["--project", self.project, "--config", self.config]

    def _run(self, args: List[str], action: str, combine_output: bool = False) -> subprocess.CompletedProcess:
        """
        Run a doppler subcommand.

        Args:
            args: Arguments after the binary name
            action: Short description used in errors and logs
            combine_output: Merge stderr into stdout

        Raises:
            StoreError: If the binary is missing, times out or exits non-zero
        """
        command = [self.binary] + args
        logger.debug("Running doppler %s", action)

        try:
            if combine_output:
                result = subprocess.run(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    timeout=self.timeout,
                )
            else:
                result = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
        except FileNotFoundError as e:
            raise StoreError(
                f"Doppler CLI not found: {self.binary}",
                suggestions=create_error_suggestions("doppler_not_installed"),
            ) from e
        except subprocess.TimeoutExpired as e:
            raise StoreError(f"Doppler CLI timed out after {self.timeout}s while trying to {action}") from e

        if result.returncode != 0:
            output = (result.stdout if combine_output else (result.stderr or result.stdout)) or ""
            if SECRET_NOT_FOUND_MARKER in output:
                raise SecretNotFoundError(
                    f"Doppler CLI failed to {action}: secret not found in {self.describe()}",
                    output=output.strip(),
                    suggestions=create_error_suggestions("secret_not_found"),
                )
            raise StoreError(
                f"Doppler CLI failed to {action} (exit code {result.returncode})",
                output=output.strip(),
                suggestions=create_error_suggestions(
                    "doppler_command_failed", project=self.project, config=self.config
                ),
            )

        return result

    def set_secret(self, name: str, value: str) -> None:
        name = name.upper()
        self._run(
            ["secrets", "set", name, value] + self._scope_args(),
            f"set secret {name}",
            combine_output=True,
        )
        logger.debug("Stored secret %s in %s", name, self.describe())

    def get_secret(self, name: str) -> str:
        name = name.upper()
        result = self._run(
            ["secrets", "get", name] + self._scope_args() + ["--plain"],
            f"get secret {name}",
        )

        value = result.stdout
        if value.endswith("\n"):
            value = value[:-1]

        if not value:
            raise SecretNotFoundError(
                f"Secret {name} not found in {self.describe()}",
                suggestions=create_error_suggestions("secret_not_found"),
            )

        return value

    def delete_secret(self, name: str) -> None:
        name = name.upper()
        self._run(
            ["secrets", "delete", name] + self._scope_args() + ["--yes"],
            f"delete secret {name}",
            combine_output=True,
        )
        logger.debug("Deleted secret %s from %s", name, self.describe())

    def list_all_secrets(self) -> Dict[str, str]:
        result = self._run(
            ["secrets", "download"] + self._scope_args() + ["--format", "json", "--no-file"],
            "download secrets",
        )

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise StoreError(
                f"Could not parse secrets downloaded from {self.describe()}",
                output=f"invalid JSON: {e}",
            ) from e

        if not isinstance(data, dict):
            raise StoreError(
                f"Could not parse secrets downloaded from {self.describe()}",
                output=f"expected a JSON object, got {type(data).__name__}",
            )

        for name, value in data.items():
            if not isinstance(value, str):
                raise StoreError(
                    f"Could not parse secrets downloaded from {self.describe()}",
                    output=f"secret {name} has a non-string value",
                )

        return data
