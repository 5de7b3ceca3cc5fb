"""
Kill escalation: drive a sequence of termination actions against a process,
waiting a grace period after each one, until the process is reaped.
"""
import math
import numbers
import logging
from collections import namedtuple
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

from procbg.config import effective_settings as config
from procbg.background.backends import ReapOutcome
from procbg.background.errors import ConfigurationError

if TYPE_CHECKING:
    from .process import BackgroundProcess

log = logging.getLogger(__name__)

GRACEFUL = "graceful"
FORCEFUL = "forceful"

# Signal names are accepted as aliases.
_ACTION_ALIASES = {
    "graceful": GRACEFUL, "term": GRACEFUL, "sigterm": GRACEFUL,
    "forceful": FORCEFUL, "kill": FORCEFUL, "sigkill": FORCEFUL,
}

KillStep = namedtuple("KillStep", ["action", "grace"])


def _parse_action(value) -> str:
    if isinstance(value, str) and value.lower() in _ACTION_ALIASES:
        return _ACTION_ALIASES[value.lower()]
    raise ConfigurationError(f"Unknown kill action {value!r}; expected 'graceful' or 'forceful'.")


def _parse_grace(value) -> float:
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise ConfigurationError(f"Grace period must be a number of seconds, got {value!r}.") from None
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value) or value < 0:
        raise ConfigurationError(f"Grace period must be a finite, non-negative number of seconds, got {value!r}.")
    return float(value)


def parse_kill_sequence(sequence: Union[str, Iterable]) -> List[KillStep]:
    """
    Parses a flat kill sequence into (action, grace) steps.

    The sequence alternates action names and grace periods, e.g.
    ``["graceful", 2, "forceful", 3]`` or the string ``"TERM 2 KILL 3"``. Only the
    last action may omit its grace period, in which case its grace is None
    (no further wait).

    :raises ConfigurationError: If the sequence is empty or malformed.
    """
    items = sequence.split() if isinstance(sequence, str) else list(sequence)
    if not items:
        raise ConfigurationError("Kill sequence must not be empty.")

    steps = []
    for index in range(0, len(items), 2):
        action = _parse_action(items[index])
        grace = _parse_grace(items[index + 1]) if index + 1 < len(items) else None
        steps.append(KillStep(action, grace))
    return steps


def escalate(process: "BackgroundProcess", sequence: Optional[Union[str, Iterable]] = None) -> bool:
    """
    Terminates `process` by walking the kill sequence.

    Before each step the process is probed for liveness; after each action the
    process is reaped with a blocking wait bounded by that step's grace period.
    The walk stops as soon as a reap succeeds or the sequence is exhausted.

    :param process: The process to terminate.
    :param sequence: The kill sequence; defaults to DEFAULT_KILL_SEQUENCE.
    :return: True if the process is not alive afterwards (including when it already wasn't).
    """
    steps = parse_kill_sequence(config.DEFAULT_KILL_SEQUENCE if sequence is None else sequence)

    for step in steps:
        if not process.is_alive():
            break
        log.info(f"Sending {step.action} termination to pid {process.pid} (grace {step.grace}s).")
        process.send_action(step.action)
        if process.reap(blocking=True, timeout=step.grace or 0) is not ReapOutcome.STILL_RUNNING:
            break

    alive = process.is_alive()
    if alive:
        log.warning(f"Process {process.pid} is still alive after the kill sequence {steps}.")
    return not alive
