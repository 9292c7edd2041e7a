"""This module provides the cooperative cancellation token used by the runner."""
import threading


class CancellationToken:
    """A flag that one thread sets and the analysis loop polls between groups."""

    def __init__(self) -> None:
        """Initialization of the class."""
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request that the running analysis stops before the next group."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()
