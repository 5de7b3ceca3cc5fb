import time
import math
import numbers
import logging
from collections import namedtuple
from typing import Any, List, Optional, Union

from procbg.background.errors import ConfigurationError
from procbg.background.launcher import start

log = logging.getLogger(__name__)

TimeoutResult = namedtuple("TimeoutResult", ["status", "killed"])


def timeout_system(timeout: float, command: Union[str, List[str]], **options: Any) -> Optional[TimeoutResult]:
    """
    Runs a command for at most `timeout` seconds, terminating it if it is still running.

    The full timeout is always granted: the process is waited on repeatedly
    until it exits or the time is used up, and only then terminated with the
    default kill sequence.

    :param timeout: Seconds the command may run (fractions allowed).
    :param command: Command line or argument list, as for `procbg.start`.
    :param options: Further keyword options for `procbg.start`.
    :return: (status, killed), where status is the composite exit status word and
             killed tells whether the process had to be terminated; None if the
             process could not be started.
    :raises ConfigurationError: If the timeout is not a finite, non-negative number.
    """
    if isinstance(timeout, bool) or not isinstance(timeout, numbers.Real) or not math.isfinite(timeout) or timeout < 0:
        raise ConfigurationError(f"timeout_system needs a finite, non-negative number of seconds, got {timeout!r}")

    process = start(command, **options)
    if process is None:
        return None

    deadline = time.monotonic() + timeout
    remaining = float(timeout)
    while remaining > 0 and process.status is None:
        process.wait(remaining)
        remaining = deadline - time.monotonic()

    killed = process.is_alive()
    if killed:
        log.info(f"Process {process.pid} still running after {timeout}s, terminating.")
        process.terminate()
    return TimeoutResult(process.wait(), killed)
