"""Error handling utilities for the keygen CLI."""

import sys
import traceback
from typing import List, Optional

import click


class KeygenError(Exception):
    """Base exception for keygen errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestions: Optional[list] = None,
    ):
        self.message = message
        self.details = details
        self.suggestions = suggestions or []
        super().__init__(message)


class ConfigurationError(KeygenError):
    """Raised when configuration is invalid or missing."""

    pass


class GenerationError(KeygenError):
    """Raised when key material cannot be generated."""

    pass


class ValidationError(KeygenError):
    """Raised when a generated key violates a structural rule."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")
        # Keep the bare message for callers that branch on it
        self.reason = message


class KeyStateError(KeygenError):
    """Raised when an operation does not apply to a key in its current state."""

    pass


class StoreError(KeygenError):
    """Raised when a secret store call fails or returns unusable output."""

    def __init__(
        self,
        message: str,
        output: Optional[str] = None,
        suggestions: Optional[list] = None,
    ):
        self.output = output
        super().__init__(message, details=output or None, suggestions=suggestions)


class SecretNotFoundError(StoreError):
    """Raised when a secret is missing from the store."""

    pass


class CleanupError(StoreError):
    """Raised when cleanup stops partway through deleting keys.

    ``eligible`` is every id cleanup planned to delete, ``deleted`` the ids
    whose key and metadata secrets were both removed before the failure.
    """

    def __init__(
        self,
        message: str,
        eligible: List[str],
        deleted: List[str],
        failed_id: str,
        output: Optional[str] = None,
    ):
        self.eligible = list(eligible)
        self.deleted = list(deleted)
        self.failed_id = failed_id
        super().__init__(message, output=output)

    @property
    def remaining(self) -> List[str]:
        """Ids that were planned but not (fully) deleted."""
        return [key_id for key_id in self.eligible if key_id not in self.deleted]


class ErrorHandler:
    """Handles and formats errors for user-friendly display."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle and display error with appropriate formatting.

        Args:
            error: Exception to handle
            context: Optional context about when/where error occurred
        """
        if isinstance(error, KeygenError):
            self._handle_keygen_error(error, context)
        else:
            self._handle_generic_error(error, context)

    def _handle_keygen_error(self, error: KeygenError, context: Optional[str]) -> None:
        """Handle keygen-specific errors."""
        click.echo(f"✗ {error.message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if error.details:
            click.echo(f"Details: {error.details}", err=True)

        if isinstance(error, CleanupError):
            click.echo(f"Deleted before failure: {', '.join(error.deleted) or 'none'}", err=True)
            click.echo(f"Not deleted: {', '.join(error.remaining) or 'none'}", err=True)

        if error.suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in error.suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def _handle_generic_error(self, error: Exception, context: Optional[str]) -> None:
        """Handle generic Python exceptions."""
        error_type = type(error).__name__

        if isinstance(error, FileNotFoundError):
            message = f"File not found: {error}"
            suggestions = [
                "Check that the file path is correct",
                "Ensure the file exists and is readable",
            ]
        elif isinstance(error, PermissionError):
            message = f"Permission denied: {error}"
            suggestions = [
                "Check file/directory permissions",
                "Try running with appropriate privileges",
            ]
        else:
            message = f"{error_type}: {error}"
            suggestions = []

        click.echo(f"✗ {message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def exit_with_error(self, error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
        """Handle error and exit with specified code."""
        self.handle_error(error, context)
        sys.exit(exit_code)


def create_error_suggestions(error_type: str, **kwargs) -> list:
    """
    Create contextual error suggestions based on error type and context.

    Args:
        error_type: Type of error
        **kwargs: Additional context information (``project``, ``config``)

    Returns:
        list: List of suggestion strings
    """
    project = kwargs.get("project", "<project>")
    config = kwargs.get("config", "<config>")

    suggestions = {
        "doppler_not_installed": [
            "Install the Doppler CLI: https://docs.doppler.com/docs/install-cli",
            "Set doppler_binary in keygen.yml if it lives outside PATH",
        ],
        "doppler_command_failed": [
            "Run 'doppler login' or export DOPPLER_TOKEN",
            f"Check that project '{project}' and config '{config}' exist",
            "Verify the token has write access to the config",
        ],
        "secret_not_found": [
            "Run 'keygen list' to see the stored key ids",
            "Key ids are upper-case, e.g. KEY_1700000000",
        ],
        "missing_target": [
            "Pass --project and --config",
            "Or export DOPPLER_PROJECT and DOPPLER_CONFIG",
            "Or run 'keygen init' to write a keygen.yml",
        ],
        "key_not_active": [
            "Only the active key of a lineage can be rotated",
            "Run 'keygen list' to find the active key",
        ],
        "configuration_invalid": [
            "Check YAML syntax in the settings file",
            "Check the KEYGEN_KEY_PREFIX and DOPPLER_* environment variables",
            "Validate configuration values are correct",
        ],
    }

    return suggestions.get(error_type, [])


def format_validation_errors(errors: list) -> str:
    """
    Format validation errors for display.

    Args:
        errors: List of validation error messages

    Returns:
        str: Formatted error message
    """
    if not errors:
        return "No validation errors"

    if len(errors) == 1:
        return f"Validation error: {errors[0]}"

    formatted = "Validation errors:\n"
    for i, error in enumerate(errors, 1):
        formatted += f"  {i}. {error}\n"

    return formatted.strip()
