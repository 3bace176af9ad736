"""Document store configuration models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """Configuration for the document store.

    Parameters
    ----------
    backend : {"dynamodb", "memory"}
        Store implementation.
    experiments_table : str
        Table holding experiments, memberships, protocol sessions, sessions
        and tasks.
    questionnaires_table : str
        Table holding questionnaire definitions.
    responses_table : str
        Table holding questionnaire responses.
    region : str | None
        AWS region.
    endpoint_url : str | None
        Endpoint override for a local emulator.
    max_attempts : int
        Total attempts per store call, including retries.
    retry_mode : {"standard", "adaptive", "legacy"}
        botocore retry mode.

    Examples
    --------
    >>> config = StoreConfig()
    >>> config.backend
    'dynamodb'
    >>> config.max_attempts
    5
    """

    backend: Literal["dynamodb", "memory"] = Field(
        default="dynamodb", description="Store backend"
    )
    experiments_table: str = Field(
        default="studyhub-experiments", description="Experiments table name"
    )
    questionnaires_table: str = Field(
        default="studyhub-questionnaires", description="Questionnaires table name"
    )
    responses_table: str = Field(
        default="studyhub-responses", description="Responses table name"
    )
    region: str | None = Field(default="eu-west-2", description="AWS region")
    endpoint_url: str | None = Field(
        default=None, description="Endpoint override (e.g. DynamoDB Local)"
    )
    max_attempts: int = Field(default=5, ge=1, description="Attempts per call")
    retry_mode: Literal["standard", "adaptive", "legacy"] = Field(
        default="standard", description="botocore retry mode"
    )
