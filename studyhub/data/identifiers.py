"""UUIDv7 generation for entity identifiers."""

from __future__ import annotations

from uuid import UUID

import uuid_utils


def generate_uuid() -> UUID:
    """Generate a time-ordered UUIDv7.

    Returns
    -------
    UUID
        A newly generated UUIDv7 with embedded timestamp.

    Examples
    --------
    >>> first = generate_uuid()
    >>> second = generate_uuid()
    >>> first < second
    True
    """
    # convert uuid_utils.UUID to the standard library type
    return UUID(str(uuid_utils.uuid7()))


def generate_id() -> str:
    """Generate an opaque entity identifier string.

    Returns
    -------
    str
        Canonical string form of a fresh UUIDv7.
    """
    return str(generate_uuid())


def is_valid_uuid7(uuid: UUID) -> bool:
    """Check whether a UUID is version 7.

    Parameters
    ----------
    uuid : UUID
        The UUID to check.

    Returns
    -------
    bool
        True if the UUID is version 7.
    """
    return uuid.version == 7
