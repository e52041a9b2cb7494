"""
Cancellation token shared by one fetch invocation.

The token is checked between listing results, before each object and
before each chunk of a copy. It is thread-safe because blocking work runs
in worker threads.
"""

from __future__ import annotations

import threading
import time

from gcsfetch.exceptions import FetchCancelledError


class CancelToken:
    """
    Cancellation signal with an optional deadline.

    Example:
        >>> token = CancelToken(timeout=30)
        >>> await service.fetch(url, Path("./out"), cancel=token)
        >>> # from another task or thread:
        >>> token.cancel()
    """

    def __init__(
        self,
        timeout: float | None = None,
        parent: CancelToken | None = None,
    ) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._parent = parent

    def cancel(self) -> None:
        """Signal cancellation."""
        self._event.set()

    @property
    def expired(self) -> bool:
        """True once the deadline (own or inherited) has passed."""
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent.expired if self._parent is not None else False

    @property
    def cancelled(self) -> bool:
        """True once cancelled explicitly, by the parent, or by deadline."""
        if self._event.is_set():
            return True
        if self._parent is not None and self._parent.cancelled:
            return True
        return self.expired

    def raise_if_cancelled(self, stage: str) -> None:
        """Raise FetchCancelledError if the token has fired."""
        if not self.cancelled:
            return
        reason = "timed out" if self.expired and not self._event.is_set() else "cancelled"
        raise FetchCancelledError(stage=stage, reason=reason)

    def child(self) -> CancelToken:
        """Derived token: fires with this one, but can also be cancelled alone."""
        return CancelToken(parent=self)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"
