"""Cooperative cancellation."""

import threading

from assistant_core.errors import OperationCancelledError


class CancellationToken:
    """Flag checked before suspension points and at phase boundaries.

    Safe to cancel from another thread; phases of one operation may run
    on different workers.
    """

    def __init__(self):
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation cancelled")


__all__ = ["CancellationToken"]
