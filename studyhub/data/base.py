"""Base Pydantic model for studyhub entity payloads.

Payloads are stored and exchanged with camelCase attribute names
(``sessionTypes``, ``questionnaireConfig``) while Python code uses
snake_case fields. Unknown attributes found on stored items are ignored so
that records written by older releases keep loading.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

type JsonValue = (
    str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]
)


class StudyhubBaseModel(BaseModel):
    """Base Pydantic model for all studyhub payloads and records.

    Examples
    --------
    >>> class Sample(StudyhubBaseModel):
    ...     session_types: dict[str, int] = {}
    >>> Sample.model_validate({"sessionTypes": {"daily": 1}}).session_types
    {'daily': 1}
    >>> Sample(session_types={"daily": 1}).to_payload()
    {'sessionTypes': {'daily': 1}}
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,  # accept snake_case in Python code
        extra="ignore",  # stored items may carry legacy attributes
        validate_assignment=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase structured value written to the store.

        Returns
        -------
        dict[str, Any]
            JSON-compatible dictionary keyed by attribute alias.
        """
        return self.model_dump(mode="json", by_alias=True)
