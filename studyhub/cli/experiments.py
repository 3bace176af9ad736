"""Experiment commands for studyhub CLI."""

from __future__ import annotations

from pathlib import Path

import click

from studyhub.cli.utils import (
    fail,
    format_output,
    identity_from_context,
    load_data_file,
    parse_model,
    print_error,
    print_success,
    print_warning,
    services_from_context,
)
from studyhub.errors import StudyhubError
from studyhub.experiments.models import CreateExperimentRequest

FORMAT_OPTION = click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json", "table"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)


@click.group()
def experiments() -> None:
    r"""Create, inspect, and transition experiments.

    \b
    Examples:
        $ studyhub experiments list
        $ studyhub experiments create sleep-study.yaml
        $ studyhub experiments transition EXP_ID Active
    """


@experiments.command("list")
@FORMAT_OPTION
@click.pass_context
def list_experiments(ctx: click.Context, format_type: str) -> None:
    """List experiments, newest first."""
    services = services_from_context(ctx)
    try:
        summaries = services.experiments.list()
    except StudyhubError as e:
        fail(e)
        return
    rows = [summary.model_dump(mode="json", exclude={"role"}) for summary in summaries]
    click.echo(format_output(rows, format_type))  # type: ignore[arg-type]


@experiments.command("get")
@click.argument("experiment_id")
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice(["yaml", "json"], case_sensitive=False),
    default="yaml",
    help="Output format (default: yaml)",
)
@click.pass_context
def get_experiment(ctx: click.Context, experiment_id: str, format_type: str) -> None:
    """Show one experiment."""
    services = services_from_context(ctx)
    try:
        record = services.experiments.get(experiment_id)
    except StudyhubError as e:
        fail(e)
        return
    if record is None:
        print_error(f"Experiment '{experiment_id}' not found", exit_code=3)
        return
    click.echo(format_output(record.to_payload(), format_type))  # type: ignore[arg-type]


@experiments.command("create")
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Only check questionnaire references",
)
@click.pass_context
def create_experiment(ctx: click.Context, file: Path, dry_run: bool) -> None:
    r"""Create an experiment from a JSON or YAML file.

    The file holds an object with ``data`` and optionally ``id`` and
    ``questionnaireConfig``.

    \b
    Examples:
        $ studyhub experiments create sleep-study.yaml
        $ studyhub experiments create sleep-study.json --dry-run
    """
    services = services_from_context(ctx)
    try:
        request = parse_model(CreateExperimentRequest, load_data_file(file))
        if dry_run:
            report = services.experiments.validate_request(request)
            if not report.valid:
                print_error(report.message, exit_code=2)
            print_success(report.message)
            return
        record = services.experiments.create(request, identity_from_context(ctx))
    except StudyhubError as e:
        fail(e)
        return
    print_success(f"Created experiment {record.id} ({record.status})")


@experiments.command("validate")
@click.argument("experiment_id")
@click.pass_context
def validate_experiment(ctx: click.Context, experiment_id: str) -> None:
    """Check that a stored experiment's questionnaires all exist."""
    services = services_from_context(ctx)
    try:
        report = services.experiments.validate(experiment_id)
    except StudyhubError as e:
        fail(e)
        return
    if report.valid:
        print_success(report.message)
    else:
        print_warning(report.message)
        ctx.exit(2)


@experiments.command("transition")
@click.argument("experiment_id")
@click.argument(
    "target", type=click.Choice(["Active", "Paused", "Closed"], case_sensitive=False)
)
@click.pass_context
def transition_experiment(ctx: click.Context, experiment_id: str, target: str) -> None:
    r"""Move an experiment to a new status.

    \b
    Examples:
        $ studyhub experiments transition EXP_ID Active
        $ studyhub experiments transition EXP_ID Closed
    """
    services = services_from_context(ctx)
    try:
        record = services.experiments.transition(
            experiment_id, target.capitalize(), identity_from_context(ctx)
        )
    except StudyhubError as e:
        fail(e)
        return
    print_success(f"Experiment {record.id} is now {record.status}")
