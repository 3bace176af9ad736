"""Pre-flight configuration checks.

These catch deployment mistakes that pydantic field validation cannot see
because they span several fields or sections.
"""

from __future__ import annotations

from studyhub.config.config import StudyhubConfig


def check_tables(config: StudyhubConfig) -> list[str]:
    """Check that table names are set and distinct.

    Parameters
    ----------
    config : StudyhubConfig
        Configuration to check.

    Returns
    -------
    list[str]
        Table problems, empty when none.
    """
    errors: list[str] = []
    tables = {
        "experiments_table": config.store.experiments_table,
        "questionnaires_table": config.store.questionnaires_table,
        "responses_table": config.store.responses_table,
    }
    for field, name in tables.items():
        if not name.strip():
            errors.append(f"store.{field} must not be blank")

    names = [name for name in tables.values() if name.strip()]
    if len(set(names)) != len(names):
        errors.append("store table names must be distinct")
    return errors


def check_backend(config: StudyhubConfig) -> list[str]:
    """Check backend-specific settings."""
    errors: list[str] = []
    store = config.store
    if store.backend == "dynamodb" and not store.region:
        errors.append("store.region is required for the dynamodb backend")
    if store.endpoint_url is not None and not store.endpoint_url.startswith(
        ("http://", "https://")
    ):
        errors.append(f"store.endpoint_url must be an http(s) URL: {store.endpoint_url}")
    return errors


def check_identity(config: StudyhubConfig) -> list[str]:
    """Check that the local identity is not enabled in production."""
    if config.profile == "prod" and config.identity.local_mode:
        return ["identity.local_mode must be disabled in the prod profile"]
    return []


def validate_config(config: StudyhubConfig) -> list[str]:
    """Run every configuration check.

    Parameters
    ----------
    config : StudyhubConfig
        Configuration to validate.

    Returns
    -------
    list[str]
        All problems found; an empty list means the configuration is usable.

    Examples
    --------
    >>> from studyhub.config import get_default_config
    >>> validate_config(get_default_config())
    []
    """
    return [*check_tables(config), *check_backend(config), *check_identity(config)]
