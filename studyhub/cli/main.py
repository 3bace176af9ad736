"""Main CLI entry point for studyhub.

This module provides the root command group. Command groups are imported
only when invoked.
"""

from __future__ import annotations

import importlib
from pathlib import Path

import click

from studyhub import __version__


@click.group()
@click.version_option(version=__version__, prog_name="studyhub")
@click.option(
    "--config-file",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: use profile defaults)",
)
@click.option(
    "--profile",
    "-p",
    type=click.Choice(["default", "dev", "prod", "test"], case_sensitive=False),
    default="default",
    help="Configuration profile to use",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress all output except errors",
)
@click.option(
    "--as-user",
    type=str,
    default=None,
    help="Act as this username instead of the configured identity",
)
@click.option(
    "--researcher",
    is_flag=True,
    default=False,
    help="Give the --as-user identity the researcher role",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    profile: str,
    verbose: bool,
    quiet: bool,
    as_user: str | None,
    researcher: bool,
) -> None:
    r"""Manage research studies: experiments, members, and questionnaires.

    \b
    Examples:
        # Show version
        $ studyhub --version

        # List experiments against a local emulator
        $ studyhub --profile dev experiments list

        # Create an experiment as a researcher
        $ studyhub --as-user alice --researcher experiments create sleep.yaml

        # Enroll participants from a file
        $ studyhub members import EXP_ID members.yaml
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["profile"] = profile
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["as_user"] = as_user
    ctx.obj["researcher"] = researcher


class LazyGroup(click.Group):
    """Click group that lazily loads subcommands."""

    def __init__(
        self,
        name: str | None = None,
        lazy_subcommands: dict[str, tuple[str, str]] | None = None,
        **kwargs: object,
    ) -> None:
        super().__init__(name=name, **kwargs)
        self._lazy_subcommands: dict[str, tuple[str, str]] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(base + lazy)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command, loading it lazily if needed."""
        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)
        return super().get_command(ctx, cmd_name)

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Import and return a lazy command."""
        module_path, attr_name = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)
        return getattr(module, attr_name)  # type: ignore[no-any-return]


cli = LazyGroup(
    name="studyhub",
    help=cli.help,
    params=cli.params,
    callback=cli.callback,
    lazy_subcommands={
        "config": ("studyhub.cli.config", "config"),
        "experiments": ("studyhub.cli.experiments", "experiments"),
        "members": ("studyhub.cli.members", "members"),
        "questionnaires": ("studyhub.cli.questionnaires", "questionnaires"),
    },
)
