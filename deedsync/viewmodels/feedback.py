"""Single current-status value shown to the user.

Call context:
    ``TransactionOrchestrator`` and ``DeedsVM`` publish; views read
    :attr:`FeedbackChannel.state` or subscribe through ``on_change``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Literal, Optional

FeedbackKind = Literal["idle", "in_progress", "success", "cancelled", "error"]


@dataclass(frozen=True)
class FeedbackState:
    """Immutable feedback snapshot."""

    kind: FeedbackKind = "idle"
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


class FeedbackChannel:
    """Holds the latest feedback value and notifies one optional listener."""

    def __init__(self, on_change: Optional[Callable[[FeedbackState], None]] = None) -> None:
        self.on_change = on_change
        self._lock = threading.Lock()
        self._state = FeedbackState()

    @property
    def state(self) -> FeedbackState:
        return self._state

    def reset(self) -> None:
        self._publish(FeedbackState())

    def in_progress(self, message: str) -> None:
        self._publish(FeedbackState("in_progress", message))

    def success(self, message: str) -> None:
        self._publish(FeedbackState("success", message))

    def cancelled(self, message: str) -> None:
        self._publish(FeedbackState("cancelled", message))

    def error(self, message: str) -> None:
        self._publish(FeedbackState("error", message))

    def _publish(self, state: FeedbackState) -> None:
        with self._lock:
            self._state = state
        if self.on_change:
            self.on_change(state)


__all__ = ["FeedbackChannel", "FeedbackKind", "FeedbackState"]
