"""
Retry bookkeeping and cancellable backoff delays.

Backoff waits on a ``threading.Event`` instead of sleeping, so a caller
holding the event can interrupt a pending retry.
"""

from __future__ import annotations

import threading
from typing import Optional

import attrs
from attrs import field, validators

from dirauth.core.types import ServerAddress


@attrs.define
class RetryContext:
    """
    Attempt counter for one server.

    A fresh context is created for every server in the discovery list.

    INVARIANT: 0 <= attempt <= max_retries + 1
    """

    server: ServerAddress
    max_retries: int = field(default=2, validator=validators.ge(0))
    backoff_base_ms: int = 200
    attempt: int = 0

    def record_failure(self) -> None:
        self.attempt += 1

    @property
    def exhausted(self) -> bool:
        """True once every allowed attempt has failed."""
        return self.attempt > self.max_retries

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries

    def next_delay(self) -> float:
        """Delay in seconds before the next attempt: base * 2^(attempt-1)."""
        return exponential_delay(self.backoff_base_ms, self.attempt)


def exponential_delay(base_ms: int, attempt: int) -> float:
    """
    Backoff delay in seconds for the given (1-based) failed attempt.

    Examples:
        exponential_delay(200, 1) -> 0.2
        exponential_delay(200, 2) -> 0.4
    """
    if attempt < 1:
        return 0.0
    return base_ms * (1 << (attempt - 1)) / 1000.0


@attrs.define
class CancellableDelay:
    """
    Sleep primitive that can be interrupted.

    Example:
        cancel = threading.Event()
        delay = CancellableDelay(cancel)
        if not delay.wait(0.2):
            # cancel.set() was called from another thread
            ...
    """

    cancel: threading.Event = attrs.Factory(threading.Event)

    def wait(self, seconds: float) -> bool:
        """
        Block for ``seconds`` unless cancelled.

        Returns:
            True if the full delay elapsed, False if cancelled
        """
        if self.cancel.is_set():
            return False
        return not self.cancel.wait(timeout=max(seconds, 0.0))

    @classmethod
    def for_token(cls, cancel: Optional[threading.Event]) -> CancellableDelay:
        return cls(cancel=cancel) if cancel is not None else cls()
