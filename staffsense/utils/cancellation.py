"""
StaffSense - Cancellation Token
Lets a caller abort a long ranking or capacity run cleanly.
"""

import threading
from typing import Optional

from staffsense.utils.errors import EngineCancelled


class CancelToken:
    """Thread-safe cancellation flag checked between units of work."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: Optional[str] = None) -> None:
        if self._event.is_set():
            raise EngineCancelled(self.reason or "cancelled", field=stage)


def check_cancelled(token: Optional[CancelToken], stage: Optional[str] = None) -> None:
    """No-op when no token was supplied."""
    if token is not None:
        token.raise_if_cancelled(stage)
