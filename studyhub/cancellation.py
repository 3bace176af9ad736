"""Cooperative cancellation for store operations.

A token is shared between the caller and an in-flight operation. Backends
check it immediately before and immediately after every store call; a result
that arrives after cancellation is discarded.
"""

from __future__ import annotations

import threading

from studyhub.errors import OperationCancelledError


class CancellationToken:
    """Thread-safe cancellation signal.

    Examples
    --------
    >>> token = CancellationToken()
    >>> token.cancelled
    False
    >>> token.cancel()
    >>> token.cancelled
    True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Calling it more than once has no further effect."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise if cancellation has been requested.

        Raises
        ------
        OperationCancelledError
            If ``cancel()`` was called.
        """
        if self._event.is_set():
            raise OperationCancelledError()


def check_cancelled(cancel: CancellationToken | None) -> None:
    """Raise ``OperationCancelledError`` if an optional token is cancelled."""
    if cancel is not None:
        cancel.raise_if_cancelled()
