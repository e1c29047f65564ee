"""
Retry — fixed-interval polling until a probe succeeds or time runs out.

Used to wait for external state to converge (a node becoming ready,
an app reaching "started"). There is no backoff and no jitter: the
probe runs, then the caller sleeps ``interval`` seconds, until either
the probe returns True or the deadline passes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Pause between two probe attempts.
DEFAULT_INTERVAL = 5.0


def retry(
    timeout: float,
    probe: Callable[[], bool],
    interval: float = DEFAULT_INTERVAL,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Call ``probe`` until it returns True or ``timeout`` seconds elapse.

    The probe always runs at least once. The last sleep is shortened so
    the wait never overshoots the deadline by more than one probe call.

    Args:
        timeout: Deadline in seconds, measured from the first call.
        probe: Zero-argument callable returning a bool.
        interval: Seconds between attempts.
        clock: Monotonic time source (injectable for tests).
        sleep: Sleep function (injectable for tests).

    Returns:
        True if the probe succeeded before the deadline.
    """
    deadline = clock() + timeout
    attempts = 0
    while True:
        attempts += 1
        if probe():
            logger.debug("Probe succeeded after %d attempt(s)", attempts)
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            logger.info("Probe still failing after %d attempt(s), %.1fs", attempts, timeout)
            return False
        sleep(min(interval, remaining))
