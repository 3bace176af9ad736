"""Membership commands for studyhub CLI."""

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
    parse_model,
    print_success,
    services_from_context,
)
from studyhub.errors import StudyhubError, ValidationError
from studyhub.memberships.models import MemberBatchItem, MemberRequest

ROLES = ["participant", "researcher"]
STATUSES = ["active", "inactive", "withdrawn", "completed"]


@click.group()
def members() -> None:
    r"""Enroll and remove experiment members.

    \b
    Examples:
        $ studyhub members list EXP_ID --cohort A
        $ studyhub members add EXP_ID P001 --cohort A
        $ studyhub members import EXP_ID members.yaml
    """


@members.command("list")
@click.argument("experiment_id")
@click.option("--cohort", type=str, default=None, help="Only this cohort")
@click.option("--status", type=click.Choice(STATUSES), default=None, help="Only this status")
@click.option("--role", type=click.Choice(ROLES), default=None, help="Only this role")
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json", "table"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
@click.pass_context
def list_members(
    ctx: click.Context,
    experiment_id: str,
    cohort: str | None,
    status: str | None,
    role: str | None,
    format_type: str,
) -> None:
    """List an experiment's members."""
    services = services_from_context(ctx)
    try:
        rows = services.memberships.list(
            experiment_id, cohort=cohort, status=status, role=role
        )
    except StudyhubError as e:
        fail(e)
        return
    click.echo(
        format_output(
            [row.model_dump(mode="json") for row in rows],
            format_type,  # type: ignore[arg-type]
        )
    )


@members.command("add")
@click.argument("experiment_id")
@click.argument("participant_id")
@click.option("--role", type=click.Choice(ROLES), default="participant")
@click.option("--status", type=click.Choice(STATUSES), default="active")
@click.option("--cohort", type=str, default=None)
@click.pass_context
def add_member(
    ctx: click.Context,
    experiment_id: str,
    participant_id: str,
    role: str,
    status: str,
    cohort: str | None,
) -> None:
    """Enroll a participant, replacing any existing membership."""
    services = services_from_context(ctx)
    try:
        membership = services.memberships.add(
            experiment_id,
            participant_id,
            MemberRequest(role=role, status=status, cohort=cohort),  # type: ignore[arg-type]
            identity_from_context(ctx),
        )
    except StudyhubError as e:
        fail(e)
        return
    print_success(
        f"Added {membership.participant_id} to {membership.experiment_id} "
        f"as {membership.role}"
    )


@members.command("remove")
@click.argument("experiment_id")
@click.argument("participant_id")
@click.pass_context
def remove_member(ctx: click.Context, experiment_id: str, participant_id: str) -> None:
    """Remove a participant from an experiment."""
    services = services_from_context(ctx)
    try:
        services.memberships.remove(
            experiment_id, participant_id, identity_from_context(ctx)
        )
    except StudyhubError as e:
        fail(e)
        return
    print_success(f"Removed {participant_id} from {experiment_id}")


@members.command("import")
@click.argument("experiment_id")
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def import_members(ctx: click.Context, experiment_id: str, file: Path) -> None:
    r"""Enroll every participant listed in a JSON or YAML file.

    The file holds a list of objects with ``participantId`` and optionally
    ``role``, ``status``, and ``cohort``. A malformed entry rejects the
    whole file before anything is written; otherwise each entry is enrolled
    on its own and failures are reported per participant.

    \b
    Examples:
        $ studyhub members import EXP_ID members.yaml
    """
    services = services_from_context(ctx)
    try:
        entries = load_data_file(file)
        if not isinstance(entries, list):
            raise ValidationError(f"{file} must contain a list of members")
        items = [parse_model(MemberBatchItem, entry) for entry in entries]
        result = services.memberships.add_batch(
            experiment_id, items, identity_from_context(ctx)
        )
    except StudyhubError as e:
        fail(e)
        return

    table = Table(title="Import results", show_header=True, header_style="bold cyan")
    table.add_column("Participant", style="yellow")
    table.add_column("Status")
    table.add_column("Error")
    for outcome in result.results:
        table.add_row(outcome.id, outcome.status, outcome.error or "")
    console.print(table)

    summary = result.summary
    print_success(
        f"{summary.successful}/{summary.processed} members imported "
        f"({summary.failed} failed)"
    )
