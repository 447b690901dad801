"""Cooperative cancellation for migration runs."""

import threading


class CancellationToken:
    """
    Flag checked between tables and between pages.

    Cancelling never interrupts a statement already sent to a database.
    Safe to cancel from a signal handler or another thread.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
