"""Main CLI entry point for the keygen tool.

Generates, lists, rotates, verifies and cleans up JWT signing keys stored as
secrets in a Doppler project/config.
"""

import json
import os
from typing import Any, Dict, List, Optional

import click
import yaml

from edgeguard_keygen import __version__
from edgeguard_keygen.utils.errors import (
    ConfigurationError,
    ErrorHandler,
    create_error_suggestions,
    format_validation_errors,
)
from edgeguard_keygen.utils.logging import setup_logging
from edgeguard_keygen.utils.timeutils import format_duration, parse_duration, utc_now

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option("--project", "-p", help="Doppler project name [env: DOPPLER_PROJECT]")
@click.option("--config", "-c", "doppler_config", help="Doppler config name [env: DOPPLER_CONFIG]")
@click.option("--key-prefix", help="Secret name prefix (default: JWT_SIGNING_KEY)")
@click.option(
    "--settings",
    type=click.Path(dir_okay=False),
    help="Settings file (default: ./keygen.yml if present)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--log-file", help="Log to file in addition to console")
@click.pass_context
def cli(
    ctx: click.Context,
    project: Optional[str],
    doppler_config: Optional[str],
    key_prefix: Optional[str],
    settings: Optional[str],
    verbose: bool,
    log_file: Optional[str],
) -> None:
    """keygen - JWT signing key lifecycle for Doppler.

    Keys are stored as two secrets per key: JWT_SIGNING_KEY_<ID> holds the
    base64 key and JWT_SIGNING_KEY_<ID>_METADATA holds its lifecycle state.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["settings_file"] = settings
    ctx.obj["overrides"] = {
        "project": project,
        "config": doppler_config,
        "key_prefix": key_prefix,
    }
    ctx.obj["error_handler"] = ErrorHandler(verbose=verbose)

    setup_logging(verbose=verbose, log_file=log_file)


def _load_settings(ctx: click.Context) -> Dict[str, Any]:
    """Resolve settings for this invocation, caching them on the context."""
    if "settings" not in ctx.obj:
        from edgeguard_keygen.config import ConfigManager, ConfigValidationError

        config_manager = ConfigManager(settings_file=ctx.obj.get("settings_file"))
        try:
            ctx.obj["settings"] = config_manager.get_settings(ctx.obj.get("overrides"))
        except ConfigValidationError as e:
            raise ConfigurationError(
                "Invalid keygen settings",
                details=format_validation_errors(e.errors),
                suggestions=create_error_suggestions("configuration_invalid"),
            ) from e
    return ctx.obj["settings"]


def _get_manager(ctx: click.Context):
    """Build the lifecycle manager for the configured Doppler target."""
    from edgeguard_keygen.keys import KeyLifecycleManager, SigningKeyStore
    from edgeguard_keygen.store import DopplerSecretStore

    settings = _load_settings(ctx)

    # Tests and embedding callers may supply their own backend
    backend = ctx.obj.get("store")
    if backend is None:
        if not settings.get("project") or not settings.get("config"):
            raise ConfigurationError(
                "Doppler project and config are required",
                suggestions=create_error_suggestions("missing_target"),
            )
        backend = DopplerSecretStore(
            project=settings["project"],
            config=settings["config"],
            binary=settings.get("doppler_binary") or "doppler",
            timeout=settings.get("timeout"),
        )

    key_store = SigningKeyStore(backend, key_prefix=settings["key_prefix"])
    return KeyLifecycleManager(
        key_store,
        key_size=int(settings["key_size"]),
        clock=ctx.obj.get("clock") or utc_now,
    )


@cli.command()
@click.option("--size", type=int, help="Key size in bytes (default: 32)")
@click.pass_context
def generate(ctx: click.Context, size: Optional[int]) -> None:
    """Generate a new signing key and store it."""
    try:
        manager = _get_manager(ctx)
        if size is not None:
            manager.key_size = size

        key_pair = manager.generate_and_store()

        click.echo(f"Successfully generated and stored key with ID: {key_pair.id}")
        click.echo(f"  Fingerprint (SHA-256): {key_pair.fingerprint}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Key generation")


@cli.command(name="list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format",
)
@click.pass_context
def list_keys(ctx: click.Context, output_format: str) -> None:
    """List stored keys and their status."""
    try:
        manager = _get_manager(ctx)
        keys = manager.list_keys()

        if output_format == "json":
            click.echo(json.dumps([key.to_dict() for key in keys], indent=2))
            return

        if output_format == "yaml":
            click.echo(yaml.dump([key.to_dict() for key in keys], default_flow_style=False, sort_keys=False))
            return

        if not keys:
            click.echo("No keys found")
            return

        click.echo("Current Keys:")
        for key in keys:
            click.echo(f"- ID: {key.id}")
            click.echo(f"  Status: {key.state}")
            click.echo(f"  Created: {key.created_time.strftime(TIME_FORMAT)}")
            if not key.active:
                if key.rotated_time:
                    click.echo(f"  Rotated: {key.rotated_time.strftime(TIME_FORMAT)}")
                if key.rotated_from_id:
                    click.echo(f"  Replaced by: {key.rotated_from_id}")
            if key.last_used:
                click.echo(f"  Last used: {key.last_used.strftime(TIME_FORMAT)}")
            click.echo()

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Listing keys")


@cli.command()
@click.argument("key_id")
@click.pass_context
def rotate(ctx: click.Context, key_id: str) -> None:
    """Replace KEY_ID with a new active key."""
    try:
        manager = _get_manager(ctx)
        new_key = manager.rotate_key(key_id)

        click.echo(f"Successfully rotated key: {key_id.upper()}")
        click.echo(f"  New active key: {new_key.id}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Key rotation")


@cli.command()
@click.option("--max-age", help="Retention window for inactive keys, e.g. 2160h or 90d")
@click.option(
    "--dry-run/--no-dry-run",
    default=True,
    show_default=True,
    help="Only show which keys would be deleted",
)
@click.pass_context
def cleanup(ctx: click.Context, max_age: Optional[str], dry_run: bool) -> None:
    """Delete inactive keys older than the retention window."""
    try:
        settings = _load_settings(ctx)
        try:
            retention = parse_duration(max_age or settings["max_age"])
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--max-age")

        manager = _get_manager(ctx)
        targets: List[str] = manager.cleanup_old_keys(retention, dry_run=dry_run)

        if not targets:
            click.echo("No keys found eligible for cleanup")
            return

        if dry_run:
            click.echo(f"Going to delete these keys older than {format_duration(retention)} (dry run):")
        else:
            click.echo("The following keys were deleted:")

        for key_id in targets:
            click.echo(f"- {key_id}")

        if dry_run:
            click.echo("\nTo actually delete these keys, run again with --no-dry-run")

    except click.BadParameter:
        raise
    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Key cleanup")


@cli.command()
@click.argument("key_id")
@click.pass_context
def verify(ctx: click.Context, key_id: str) -> None:
    """Check that KEY_ID is present in the store."""
    try:
        manager = _get_manager(ctx)
        manager.verify_key(key_id)

        click.echo(f"✓ Key {key_id.upper()} is stored in {manager.key_store.backend.describe()}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Key verification")


@cli.command()
@click.option("--project", "-p", help="Doppler project name [env: DOPPLER_PROJECT]")
@click.option("--config", "-c", "doppler_config", help="Doppler config name [env: DOPPLER_CONFIG]")
@click.option("--force", is_flag=True, help="Overwrite an existing keygen.yml")
@click.pass_context
def init(ctx: click.Context, project: Optional[str], doppler_config: Optional[str], force: bool) -> None:
    """Write a keygen.yml settings file in the current directory."""
    try:
        from edgeguard_keygen.config import ConfigManager
        from edgeguard_keygen.config.manager import ENV_VARS

        overrides = ctx.obj["overrides"]
        project = project or overrides.get("project") or os.environ.get(ENV_VARS["project"])
        doppler_config = doppler_config or overrides.get("config") or os.environ.get(ENV_VARS["config"])
        if not project or not doppler_config:
            raise ConfigurationError(
                "Pass --project and --config to initialize settings",
                suggestions=[
                    "keygen init --project my-api --config prd",
                    "Or export DOPPLER_PROJECT and DOPPLER_CONFIG",
                ],
            )

        template_vars = {}
        if overrides.get("key_prefix"):
            template_vars["key_prefix"] = overrides["key_prefix"].upper()

        config_manager = ConfigManager()
        config_path = config_manager.initialize_config(
            project=project,
            config=doppler_config,
            force=force,
            **template_vars,
        )

        click.echo(f"✓ Wrote {config_path}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Settings initialization")


if __name__ == "__main__":
    cli()
