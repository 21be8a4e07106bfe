"""
Bounded polling: repeat a check at a fixed interval until it succeeds or a
deadline passes.
"""

import logging
import time
from typing import Callable, Optional

from runner.src.core.errors import PollingTimeoutError, RunCancelled

logger = logging.getLogger(__name__)

def poll_until(
    check: Callable[[], bool],
    deadline: float,
    interval: float,
    initial_delay: float = 0.0,
    description: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    cancelled: Optional[Callable[[], bool]] = None,
) -> int:
    """
    Poll ``check`` every ``interval`` seconds. Returns the number of polls
    made, including the successful one.

    The deadline clock starts after ``initial_delay``. Poll k happens at
    ``k * interval`` seconds, so it only happens while that is below the
    deadline; otherwise PollingTimeoutError is raised.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    if deadline <= 0:
        raise ValueError("deadline must be positive")

    if initial_delay > 0:
        logger.info(f"Waiting {initial_delay}s before polling {description}")
        remaining = initial_delay
        while remaining > 0:
            if cancelled is not None and cancelled():
                raise RunCancelled(f"Cancelled before polling {description}")
            chunk = min(interval, remaining)
            sleep(chunk)
            remaining -= chunk

    start = clock()
    attempts = 0

    while True:
        if cancelled is not None and cancelled():
            raise RunCancelled(f"Cancelled while waiting for {description}")

        sleep(interval)
        elapsed = clock() - start
        if elapsed >= deadline:
            logger.error(f"Gave up on {description} after {elapsed:.1f}s")
            raise PollingTimeoutError(description, deadline, attempts)

        attempts += 1
        if check():
            logger.info(f"{description} ready after {attempts} attempt(s), {elapsed:.1f}s")
            return attempts

        logger.info(f"{description} not ready (attempt {attempts}, {elapsed:.1f}s elapsed)")
