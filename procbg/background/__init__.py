"""
The background process package.
Starts a single process and supervises it through its whole lifecycle.

This package contains the BackgroundProcess handle and its helper modules,
which together handle executable resolution, stream binding, process creation,
reaping, bounded waiting and kill escalation on POSIX and Windows.
"""
from .backends import ReapOutcome
from .errors import ConfigurationError, CreationError, ProcBackgroundError, ReapContractError, ResolutionError
from .launcher import start, start_with_options
from .process import BackgroundProcess
from .registry import shutdown
from .streams import DISCARD, INHERIT
from .system import TimeoutResult, timeout_system

__all__ = [
    "BackgroundProcess", "ReapOutcome", "start", "start_with_options", "shutdown",
    "timeout_system", "TimeoutResult", "INHERIT", "DISCARD",
    "ProcBackgroundError", "ConfigurationError", "ResolutionError", "CreationError", "ReapContractError",
]
