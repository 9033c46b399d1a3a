"""Cancellation token threaded through wallet signing.

The orchestrator creates one token per submitted intent. A signer that waits
for user approval should block on :meth:`CancelToken.wait` (or poll
:attr:`CancelToken.cancelled`) and call :meth:`CancelToken.raise_if_cancelled`
when it wakes up. Both an explicit :meth:`CancelToken.cancel` and an elapsed
deadline surface as :class:`~deedsync.domain.errors.UserDeclined`.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .errors import UserDeclined


class CancelToken:
    """Thread-safe cancel flag with an optional deadline."""

    def __init__(
        self,
        timeout_s: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._clock = clock
        self._reason: Optional[str] = None
        self._deadline: Optional[float] = None
        if timeout_s is not None:
            self._deadline = clock() + max(0.0, float(timeout_s))

    def cancel(self, reason: str = "Transaction cancelled.") -> None:
        if self._reason is None:
            self._reason = reason
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    @property
    def reason(self) -> Optional[str]:
        if self._reason is not None:
            return self._reason
        if self.expired:
            return "Wallet approval timed out."
        return None

    def remaining_s(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled, the deadline passes, or ``timeout`` elapses.

        Returns ``True`` when the token is cancelled on return.
        """
        remaining = self.remaining_s()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise UserDeclined(self.reason or "Transaction cancelled.")


__all__ = ["CancelToken"]
