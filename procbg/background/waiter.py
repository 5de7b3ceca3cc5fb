import math
import time
import logging
from typing import Callable, Optional

from procbg.background.backends import ReapOutcome
from procbg.background.errors import ConfigurationError

log = logging.getLogger(__name__)

# First pause between polls; doubles up to the configured maximum.
INITIAL_POLL_INTERVAL = 0.0001


def reap_within(
    reap_once: Callable[[], ReapOutcome],
    pause: Callable[[float], None],
    timeout: Optional[float],
    max_interval: float,
    max_interrupts: int,
) -> ReapOutcome:
    """
    Repeats non-blocking reap attempts until the process is reaped or the deadline passes.

    Between attempts the caller's `pause` blocks for a growing interval, never
    longer than the time left before the deadline, so the total blocking time
    stays within `timeout` plus one attempt. A timeout of None (or infinity)
    never expires; a timeout of 0 (or less) makes exactly one attempt.

    A pause may return early (another thread recorded the exit) or be
    interrupted; either way the process is polled again and the remaining time
    is recomputed from a monotonic deadline before the next pause. With a
    finite timeout, more than `max_interrupts` consecutive interruptions end
    the wait early and report the process as still running. An unbounded wait
    keeps retrying.

    :param reap_once: Makes one non-blocking reap attempt.
    :param pause: Blocks for at most the given seconds.
    :param timeout: Seconds to wait in total, or None to wait indefinitely.
    :param max_interval: Upper bound for a single pause.
    :param max_interrupts: Consecutive interruptions tolerated by a bounded wait.
    :return: The outcome of the last attempt.
    :raises ConfigurationError: If the timeout is NaN.
    """
    if timeout is not None:
        if math.isnan(timeout):
            raise ConfigurationError(f"Wait timeout must be a number of seconds, got {timeout!r}")
        if math.isinf(timeout) and timeout > 0:
            timeout = None

    outcome = reap_once()
    if outcome is not ReapOutcome.STILL_RUNNING or (timeout is not None and timeout <= 0):
        return outcome

    deadline = None if timeout is None else time.monotonic() + timeout
    interval = INITIAL_POLL_INTERVAL
    interrupts = 0
    while True:
        if deadline is None:
            budget = interval
        else:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return ReapOutcome.STILL_RUNNING
            budget = min(interval, remaining)

        try:
            pause(budget)
        except InterruptedError:
            interrupts += 1
            if deadline is not None and interrupts > max_interrupts:
                log.warning(f"Wait interrupted {interrupts} times in a row, giving up.")
                return ReapOutcome.STILL_RUNNING
        else:
            interrupts = 0
            interval = min(interval * 2, max_interval)

        outcome = reap_once()
        if outcome is not ReapOutcome.STILL_RUNNING:
            return outcome
