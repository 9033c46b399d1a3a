from __future__ import annotations

import pytest

from deedsync.domain.cancellation import CancelToken
from deedsync.domain.errors import UserDeclined


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_token_without_timeout_is_unbounded() -> None:
    token = CancelToken()

    assert token.cancelled is False
    assert token.remaining_s() is None
    token.raise_if_cancelled()


def test_explicit_cancel_raises_user_declined_with_reason() -> None:
    token = CancelToken()
    token.cancel("Declined in wallet.")

    assert token.cancelled is True
    assert token.wait(0) is True
    with pytest.raises(UserDeclined, match="Declined in wallet."):
        token.raise_if_cancelled()


def test_deadline_expiry_counts_as_cancelled() -> None:
    clock = _Clock()
    token = CancelToken(30, clock=clock)

    assert token.remaining_s() == 30
    clock.now += 31

    assert token.expired is True
    assert token.cancelled is True
    assert token.reason == "Wallet approval timed out."
    with pytest.raises(UserDeclined):
        token.raise_if_cancelled()


def test_first_cancel_reason_wins() -> None:
    token = CancelToken()
    token.cancel("first")
    token.cancel("second")

    assert token.reason == "first"
