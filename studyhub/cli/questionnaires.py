"""Questionnaire commands for studyhub CLI."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from studyhub.cli.utils import (
    console,
    fail,
    format_output,
    identity_from_context,
    load_data_file,
    print_success,
    print_warning,
    services_from_context,
)
from studyhub.errors import StudyhubError, ValidationError


@click.group()
def questionnaires() -> None:
    r"""Import and list questionnaire definitions.

    \b
    Examples:
        $ studyhub questionnaires import questionnaires.yaml
        $ studyhub questionnaires list --format json
    """


@questionnaires.command("import")
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def import_questionnaires(ctx: click.Context, file: Path) -> None:
    r"""Create every questionnaire listed in a JSON or YAML file.

    The file holds a list of objects with ``id`` and ``data``. Malformed or
    duplicate entries fail individually.

    \b
    Examples:
        $ studyhub questionnaires import questionnaires.yaml
    """
    services = services_from_context(ctx)
    try:
        entries = load_data_file(file)
        if not isinstance(entries, list):
            raise ValidationError(f"{file} must contain a list of questionnaires")
        result = services.questionnaires.create_batch(
            entries, identity_from_context(ctx)
        )
    except StudyhubError as e:
        fail(e)
        return

    table = Table(title="Import results", show_header=True, header_style="bold cyan")
    table.add_column("Questionnaire", style="yellow")
    table.add_column("Status")
    table.add_column("Error")
    for outcome in result.results:
        table.add_row(outcome.id, outcome.status, outcome.error or "")
    console.print(table)

    summary = result.summary
    message = (
        f"{summary.successful}/{summary.processed} questionnaires imported "
        f"({summary.failed} failed)"
    )
    if summary.failed:
        print_warning(message)
    else:
        print_success(message)


@questionnaires.command("list")
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json", "table"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
@click.pass_context
def list_questionnaires(ctx: click.Context, format_type: str) -> None:
    """List live questionnaires, most recently changed first."""
    services = services_from_context(ctx)
    try:
        records = services.questionnaires.list()
    except StudyhubError as e:
        fail(e)
        return
    rows = [
        {
            "id": record.id,
            "name": record.data.name,
            "version": record.version,
            "questions": len(record.data.questions),
        }
        for record in records
    ]
    click.echo(format_output(rows, format_type))  # type: ignore[arg-type]
