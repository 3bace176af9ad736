"""CLI utility functions for studyhub.

This module provides configuration loading, service construction, output
formatting, and error reporting shared by the command groups.
"""

from __future__ import annotations

import json
import sys
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import click
import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from studyhub.errors import ValidationError, error_kind
from studyhub.identity import CallerIdentity, local_identity

if TYPE_CHECKING:
    from studyhub.config import StudyhubConfig
    from studyhub.errors import ErrorKind
    from studyhub.service import StudyhubServices

type JsonValue = (
    str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]
)

console = Console()

EXIT_CODE_BY_KIND: dict[ErrorKind, int] = {
    "validation": 2,
    "not_found": 3,
    "conflict": 4,
    "unavailable": 5,
}


def load_config_for_cli(
    config_file: str | None,
    profile: str,
    verbose: bool,
) -> StudyhubConfig:
    """Load configuration with CLI options.

    Parameters
    ----------
    config_file : str | None
        Path to configuration file (None to use profile defaults).
    profile : str
        Configuration profile name (default, dev, prod, test).
    verbose : bool
        Whether to enable verbose output.

    Returns
    -------
    StudyhubConfig
        Loaded configuration object.
    """
    from studyhub.config import load_config

    config_path = Path(config_file) if config_file else None

    try:
        config = load_config(config_path=config_path, profile=profile)
    except FileNotFoundError:
        print_error(f"Configuration file not found: {config_file}", exit_code=1)
        raise
    except (PydanticValidationError, yaml.YAMLError, ValueError) as e:
        print_error(f"Failed to load configuration: {e}", exit_code=1)
        raise

    if verbose:
        console.print(f"[green]✓[/green] Loaded configuration from profile: {profile}")
        if config_file:
            console.print(f"[green]✓[/green] Applied overrides from: {config_file}")
    return config


def config_from_context(ctx: click.Context) -> StudyhubConfig:
    """Load the configuration selected by the root group's options."""
    config_file = ctx.obj.get("config_file")
    return load_config_for_cli(
        config_file=str(config_file) if config_file else None,
        profile=ctx.obj.get("profile", "default"),
        verbose=ctx.obj.get("verbose", False),
    )


def services_from_context(ctx: click.Context) -> StudyhubServices:
    """Configure logging and build the stores for one command."""
    from studyhub.config import configure_logging
    from studyhub.service import StudyhubServices

    config = config_from_context(ctx)
    if ctx.obj.get("quiet"):
        config.logging.level = "ERROR"
    elif ctx.obj.get("verbose"):
        config.logging.level = "DEBUG"
    configure_logging(config.logging)
    return StudyhubServices.from_config(config)


def identity_from_context(ctx: click.Context) -> CallerIdentity:
    """Resolve who the command acts as.

    ``--as-user`` wins; otherwise the local identity is used when the
    configuration enables local mode, and the caller is anonymous when it
    does not.
    """
    as_user = ctx.obj.get("as_user")
    if as_user:
        return CallerIdentity(
            username=as_user, is_researcher=ctx.obj.get("researcher", False)
        )
    config = config_from_context(ctx)
    if config.identity.local_mode:
        return local_identity(config.identity)
    return CallerIdentity()


def load_data_file(path: Path) -> Any:
    """Load a JSON or YAML document.

    YAML is a superset of JSON, so one parser handles both.

    Raises
    ------
    ValidationError
        If the file cannot be parsed.
    """
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(f"Cannot parse {path}: {e}") from e


def parse_model[M: BaseModel](model: type[M], data: Any) -> M:
    """Validate input data, reporting problems as a studyhub ``ValidationError``."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def exit_code_for(exc: BaseException) -> int:
    """Return the process exit code for a failure.

    Examples
    --------
    >>> from studyhub.errors import NotFoundError
    >>> exit_code_for(NotFoundError("Experiment", "E1"))
    3
    >>> exit_code_for(KeyError("x"))
    1
    """
    return EXIT_CODE_BY_KIND.get(error_kind(exc), 1)


def fail(exc: BaseException) -> None:
    """Print a failure and exit with the code of its kind."""
    print_error(str(exc), exit_code=exit_code_for(exc))


def format_output(
    data: dict[str, JsonValue] | list[JsonValue],
    format_type: Literal["yaml", "json", "table"],
) -> str:
    """Format data for CLI output.

    Parameters
    ----------
    data : dict[str, JsonValue] | list[JsonValue]
        Data to format.
    format_type : {"yaml", "json", "table"}
        Output format type.

    Returns
    -------
    str
        Formatted output string.

    Raises
    ------
    ValueError
        If format_type is invalid or data cannot be formatted.
    """
    if format_type == "yaml":
        return yaml.dump(data, default_flow_style=False, sort_keys=False)
    elif format_type == "json":
        return json.dumps(data, indent=2)
    elif format_type == "table":
        if isinstance(data, dict):
            return _dict_to_table(data)
        return _rows_to_table(data)
    else:
        raise ValueError(f"Invalid format type: {format_type}")


def _render(table: Table) -> str:
    string_io = StringIO()
    temp_console = Console(file=string_io, force_terminal=True, width=120)
    temp_console.print(table)
    return string_io.getvalue()


def _dict_to_table(data: dict[str, JsonValue], title: str | None = None) -> str:
    """Convert dictionary to rich table string.

    Parameters
    ----------
    data : dict[str, JsonValue]
        Dictionary to convert.
    title : str | None
        Optional table title.

    Returns
    -------
    str
        Rendered table as string.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Key", style="yellow", no_wrap=True)
    table.add_column("Value", style="white")

    for key, value in data.items():
        if isinstance(value, dict):
            value_str = _format_nested_dict(value)
        elif isinstance(value, list):
            value_str = "\n".join(str(item) for item in value)
        else:
            value_str = str(value)
        table.add_row(key, value_str)

    return _render(table)


def _rows_to_table(rows: list[JsonValue]) -> str:
    """Render a list of flat records with one column per key."""
    table = Table(show_header=True, header_style="bold cyan")
    columns: list[str] = []
    for row in rows:
        if isinstance(row, dict):
            columns.extend(key for key in row if key not in columns)
    for column in columns:
        table.add_column(column)
    for row in rows:
        if isinstance(row, dict):
            table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    return _render(table)


def _format_nested_dict(data: dict[str, JsonValue], indent: int = 0) -> str:
    """Format nested dictionary for display.

    Parameters
    ----------
    data : dict[str, JsonValue]
        Dictionary to format.
    indent : int
        Indentation level.

    Returns
    -------
    str
        Formatted string.
    """
    lines: list[str] = []
    for key, value in data.items():
        prefix = "  " * indent
        if isinstance(value, dict):
            lines.append(f"{prefix}{key}:")
            lines.append(_format_nested_dict(value, indent + 1))
        else:
            lines.append(f"{prefix}{key}: {value}")
    return "\n".join(lines)


def print_error(message: str, exit_code: int = 1) -> None:
    """Print error message and exit.

    Parameters
    ----------
    message : str
        Error message to display.
    exit_code : int
        Exit code (default: 1). Pass 0 to not exit.
    """
    console.print(f"[red]✗ Error:[/red] {message}")
    if exit_code != 0:
        sys.exit(exit_code)


def print_success(message: str) -> None:
    """Print success message.

    Parameters
    ----------
    message : str
        Success message to display.
    """
    console.print(f"[green]✓ {message}[/green]")


def print_warning(message: str) -> None:
    """Print warning message.

    Parameters
    ----------
    message : str
        Warning message to display.
    """
    console.print(f"[yellow]⚠ Warning:[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message.

    Parameters
    ----------
    message : str
        Info message to display.
    """
    console.print(f"[blue]ℹ Info:[/blue] {message}")


def get_nested_value(data: dict[str, JsonValue], key_path: str) -> JsonValue:
    """Get nested dictionary value using dot notation.

    Parameters
    ----------
    data : dict[str, JsonValue]
        Dictionary to search.
    key_path : str
        Dot-separated key path (e.g., "store.backend").

    Returns
    -------
    JsonValue
        Value at key path.

    Raises
    ------
    KeyError
        If key path doesn't exist.

    Examples
    --------
    >>> data = {"a": {"b": {"c": 42}}}
    >>> get_nested_value(data, "a.b.c")
    42
    """
    current: JsonValue = data
    for key in key_path.split("."):
        if not isinstance(current, dict):
            raise KeyError(
                f"Cannot access key '{key}' in non-dict value at path '{key_path}'"
            )
        if key not in current:
            raise KeyError(f"Key '{key}' not found in path '{key_path}'")
        current = current[key]
    return current


def redact_sensitive_values(data: dict[str, JsonValue]) -> dict[str, JsonValue]:
    """Redact sensitive values in configuration.

    Parameters
    ----------
    data : dict[str, JsonValue]
        Configuration data.

    Returns
    -------
    dict[str, JsonValue]
        Data with sensitive values redacted.

    Examples
    --------
    >>> redact_sensitive_values({"store": {"secret_key": "x", "region": "eu"}})
    {'store': {'secret_key': '***REDACTED***', 'region': 'eu'}}
    """
    sensitive_keys = {"secret", "password", "token", "access_key"}

    result: dict[str, JsonValue] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = redact_sensitive_values(value)
        elif any(sensitive in key.lower() for sensitive in sensitive_keys):
            result[key] = "***REDACTED***" if value else None
        else:
            result[key] = value
    return result
