"""Typed failures raised by studyhub stores.

Stores never swallow store-level failures. They classify them into one of the
kinds below and let them propagate to the boundary layer, which maps the kind
to a transport status (see ``HTTP_STATUS_BY_KIND``).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError

type ErrorKind = Literal[
    "validation",
    "unauthenticated",
    "forbidden",
    "not_found",
    "conflict",
    "unavailable",
    "cancelled",
    "internal",
]

HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    "validation": 400,
    "unauthenticated": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "unavailable": 503,
    "cancelled": 499,
    "internal": 500,
}


class StudyhubError(Exception):
    """Base exception for studyhub failures.

    Attributes
    ----------
    kind : ErrorKind
        Failure category used by the boundary layer.
    retryable : bool
        Whether retrying the same call with backoff may succeed.
    """

    kind: ClassVar[ErrorKind] = "internal"
    retryable: ClassVar[bool] = False


class ValidationError(StudyhubError):
    """Malformed input or references to entities that do not exist.

    Parameters
    ----------
    message
        Error message. When omitted and ``missing_ids`` is given, the message
        lists every missing questionnaire.
    missing_ids
        Every referenced questionnaire id that does not exist.
    field
        Name of the offending input field, if known.

    Examples
    --------
    >>> str(ValidationError(missing_ids=["PQ", "MOOD"]))
    'Missing questionnaires: PQ, MOOD'
    """

    kind: ClassVar[ErrorKind] = "validation"

    def __init__(
        self,
        message: str | None = None,
        missing_ids: Iterable[str] | None = None,
        field: str | None = None,
    ) -> None:
        self.missing_ids = list(missing_ids or [])
        self.field = field
        if message is None:
            message = (
                format_missing(self.missing_ids)
                if self.missing_ids
                else "Invalid request"
            )
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> ValidationError:
        """Flatten a pydantic validation error into a single message.

        Parameters
        ----------
        exc : pydantic.ValidationError
            Error raised while validating an input model.

        Returns
        -------
        ValidationError
            Error whose message names each failing location.
        """
        problems: list[str] = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            problems.append(f"{location}: {error['msg']}" if location else error["msg"])
        first = exc.errors()[0]["loc"] if exc.errors() else ()
        return cls("; ".join(problems), field=str(first[0]) if first else None)


class UnauthenticatedError(StudyhubError):
    """No usable caller identity was supplied."""

    kind: ClassVar[ErrorKind] = "unauthenticated"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ForbiddenError(StudyhubError):
    """The caller is authenticated but lacks the required role."""

    kind: ClassVar[ErrorKind] = "forbidden"

    def __init__(self, message: str, username: str | None = None) -> None:
        self.username = username
        super().__init__(message)


class NotFoundError(StudyhubError):
    """The targeted entity does not exist.

    Parameters
    ----------
    entity
        Entity type name, e.g. "Experiment".
    entity_id
        Identifier of the missing entity.
    message
        Override for the default "<entity> '<id>' not found" message.
    """

    kind: ClassVar[ErrorKind] = "not_found"

    def __init__(
        self, entity: str, entity_id: str, message: str | None = None
    ) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} '{entity_id}' not found")


class ConflictError(StudyhubError):
    """A conditional write lost: duplicate create or entity in the wrong state.

    Parameters
    ----------
    message
        Error message.
    attempted_status
        Status a transition tried to reach. None for non-transition conflicts.
    current_status
        Status the entity was found in. None if unknown.

    Examples
    --------
    >>> err = ConflictError(
    ...     "Cannot transition", attempted_status="Active", current_status="Active"
    ... )
    >>> str(err)
    'Cannot transition (current status: Active, attempted: Active)'
    """

    kind: ClassVar[ErrorKind] = "conflict"

    def __init__(
        self,
        message: str,
        attempted_status: str | None = None,
        current_status: str | None = None,
    ) -> None:
        self.attempted_status = attempted_status
        self.current_status = current_status
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error message."""
        message = super().__str__()
        if self.attempted_status is None:
            return message
        current = self.current_status or "unknown"
        return f"{message} (current status: {current}, attempted: {self.attempted_status})"


class ConditionFailedError(ConflictError):
    """Raw condition failure reported by a document store backend.

    Entity stores refine this into ``NotFoundError`` or a more specific
    ``ConflictError`` after checking whether the item exists.
    """

    def __init__(self, message: str = "Conditional check failed") -> None:
        super().__init__(message)


class UnavailableError(StudyhubError):
    """The store is throttling, unreachable, or timed out.

    Parameters
    ----------
    message
        Error message.
    code
        Store error code, e.g. "ProvisionedThroughputExceededException".
    """

    kind: ClassVar[ErrorKind] = "unavailable"
    retryable: ClassVar[bool] = True

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)


class OperationCancelledError(StudyhubError):
    """The caller cancelled the operation before it completed."""

    kind: ClassVar[ErrorKind] = "cancelled"

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


class InternalError(StudyhubError):
    """Unanticipated failure, usually a programming or deployment error."""

    kind: ClassVar[ErrorKind] = "internal"


def format_missing(missing_ids: Iterable[str]) -> str:
    """Format the user-visible list of missing questionnaires.

    Parameters
    ----------
    missing_ids : Iterable[str]
        Missing questionnaire ids, in report order.

    Returns
    -------
    str
        Message naming every missing id.
    """
    return f"Missing questionnaires: {', '.join(missing_ids)}"


def error_kind(exc: BaseException) -> ErrorKind:
    """Return the failure kind of any exception.

    Parameters
    ----------
    exc : BaseException
        Exception to classify.

    Returns
    -------
    ErrorKind
        The exception's kind, or "internal" for foreign exceptions.

    Examples
    --------
    >>> error_kind(NotFoundError("Experiment", "E1"))
    'not_found'
    >>> error_kind(KeyError("x"))
    'internal'
    """
    if isinstance(exc, StudyhubError):
        return exc.kind
    return "internal"


def http_status(exc: BaseException) -> int:
    """Return the transport status hint for an exception."""
    return HTTP_STATUS_BY_KIND[error_kind(exc)]
