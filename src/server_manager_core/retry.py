from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from .constants import POLL_ATTEMPTS, POLL_DELAY_SECONDS


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = POLL_ATTEMPTS
    delay_seconds: float = POLL_DELAY_SECONDS

    @classmethod
    def for_timeout(cls, timeout_seconds: float, delay_seconds: float = 1.0) -> "RetryPolicy":
        delay = max(delay_seconds, 0.0)
        attempts = int(timeout_seconds / delay) if delay else int(timeout_seconds)
        return cls(attempts=max(1, attempts), delay_seconds=delay)


def poll_until(
    predicate: Callable[[], bool],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Call predicate up to policy.attempts times, sleeping policy.delay_seconds
    between calls. Returns True as soon as predicate does, False when the
    attempts run out. Never raises on exhaustion.
    """
    for attempt in range(max(1, policy.attempts)):
        if predicate():
            return True
        if attempt < policy.attempts - 1:
            sleep(policy.delay_seconds)
    return False
