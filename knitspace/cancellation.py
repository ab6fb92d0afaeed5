"""Cooperative cancellation for in-flight generations."""

from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class CancellationToken:
    """A one-shot cancellation flag tied to one submission.

    Readers check ``cancelled`` after every suspension point. Callbacks
    registered with ``add_callback`` run once when the token is cancelled,
    which is how the transport releases its connection.
    """

    def __init__(self, owner: str = "") -> None:
        self.owner = owner
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], None]) -> None:
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def cancel(self) -> bool:
        """Cancel the token. Returns False if it was already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except RuntimeError:
                # The Qt object behind the callback may already be gone.
                logger.debug("Cancellation callback for %s failed", self.owner, exc_info=True)
        return True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken(owner={self.owner!r}, {state})"
