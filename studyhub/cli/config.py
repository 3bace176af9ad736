"""Configuration commands for studyhub CLI.

This module provides commands for viewing, validating, and exporting
configuration.
"""

from __future__ import annotations

from pathlib import Path

import click

from studyhub.cli.utils import (
    config_from_context,
    format_output,
    get_nested_value,
    load_config_for_cli,
    print_error,
    print_info,
    print_success,
    redact_sensitive_values,
)


@click.group()
def config() -> None:
    r"""Manage configuration commands.

    \b
    Examples:
        $ studyhub config show
        $ studyhub config show --format json
        $ studyhub config show --key store.backend
        $ studyhub config validate
        $ studyhub config export --output studyhub.yaml
        $ studyhub config profiles
    """


@config.command()
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json", "table"], case_sensitive=False),
    default="yaml",
    help="Output format (default: yaml)",
)
@click.option(
    "--key",
    "-k",
    type=str,
    default=None,
    help="Show specific config value (e.g., store.backend)",
)
@click.option(
    "--no-redact",
    is_flag=True,
    default=False,
    help="Show sensitive values",
)
@click.pass_context
def show(
    ctx: click.Context,
    format_type: str,
    key: str | None,
    no_redact: bool,
) -> None:
    r"""Display current configuration.

    Shows the merged configuration from profile, file, and environment
    variables.

    \b
    Examples:
        $ studyhub config show
        $ studyhub --profile prod config show --format json
        $ studyhub config show --key store.experiments_table
    """
    cfg = config_from_context(ctx)
    config_dict = cfg.model_dump(mode="json")
    if not no_redact:
        config_dict = redact_sensitive_values(config_dict)

    if key:
        try:
            click.echo(get_nested_value(config_dict, key))
        except KeyError as e:
            print_error(f"Configuration key not found: {e}")
        return

    try:
        click.echo(format_output(config_dict, format_type))  # type: ignore[arg-type]
    except ValueError as e:
        print_error(f"Failed to format output: {e}")


@config.command()
@click.option(
    "--config-file",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file to validate",
)
@click.pass_context
def validate(ctx: click.Context, config_file: Path | None) -> None:
    r"""Validate configuration.

    Loads the selected profile (plus the file, when given) and checks table
    names, the backend, and identity settings.

    \b
    Examples:
        $ studyhub config validate
        $ studyhub --profile prod config validate --config-file prod.yaml

    \b
    Exit codes:
        0 - Configuration is valid
        1 - Configuration is invalid
    """
    from studyhub.config import validate_config

    if config_file is None:
        config_file = ctx.obj.get("config_file")

    cfg = load_config_for_cli(
        config_file=str(config_file) if config_file else None,
        profile=ctx.obj.get("profile", "default"),
        verbose=ctx.obj.get("verbose", False),
    )
    errors = validate_config(cfg)
    if errors:
        print_error("Configuration validation failed:", exit_code=0)
        for error in errors:
            click.echo(f"  • {error}", err=True)
        ctx.exit(1)
    print_success(f"Configuration is valid (profile: {cfg.profile})")


@config.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: stdout)",
)
@click.option(
    "--include-defaults",
    is_flag=True,
    default=False,
    help="Include values equal to the defaults",
)
@click.pass_context
def export(ctx: click.Context, output: Path | None, include_defaults: bool) -> None:
    r"""Export current configuration to YAML.

    \b
    Examples:
        $ studyhub config export
        $ studyhub --profile dev config export --output dev.yaml
    """
    from studyhub.config import save_yaml, to_yaml

    cfg = config_from_context(ctx)
    if output:
        save_yaml(cfg, output, include_defaults=include_defaults)
        print_success(f"Configuration exported to: {output}")
    else:
        click.echo(to_yaml(cfg, include_defaults=include_defaults))


@config.command()
def profiles() -> None:
    r"""List available configuration profiles.

    \b
    Examples:
        $ studyhub config profiles
    """
    from studyhub.config import list_profiles

    print_info("Available configuration profiles:")
    click.echo()
    for profile_name in list_profiles():
        click.echo(f"  • {profile_name}")
    click.echo()
    print_info("Use --profile to select a profile:")
    click.echo("  $ studyhub --profile dev config show")
