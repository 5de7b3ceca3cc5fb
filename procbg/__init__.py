"""
procbg: run a process in the background and supervise it.

Start a process, check whether it is alive, wait for it with or without a
timeout, and terminate it with a graceful-then-forceful kill sequence, with
the same behaviour on POSIX and Windows.
"""

from .background import (
    DISCARD,
    INHERIT,
    BackgroundProcess,
    ConfigurationError,
    CreationError,
    ProcBackgroundError,
    ReapContractError,
    ReapOutcome,
    ResolutionError,
    TimeoutResult,
    shutdown,
    start,
    start_with_options,
    timeout_system,
)

__version__ = "1.0.0"

__all__ = [
    "BackgroundProcess", "ReapOutcome", "start", "start_with_options", "shutdown",
    "timeout_system", "TimeoutResult", "INHERIT", "DISCARD",
    "ProcBackgroundError", "ConfigurationError", "ResolutionError", "CreationError", "ReapContractError",
]
