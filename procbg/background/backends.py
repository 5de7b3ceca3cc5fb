"""
Native process backends.

The lifecycle code talks only to the NativeBackend interface: create a process,
wait on it (non-blocking or bounded), and deliver the graceful or forceful
termination action. One backend is selected per interpreter by platform.
"""
import os
import sys
import enum
import signal
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

import psutil

from procbg.background import status
from procbg.background.errors import CreationError, ReapContractError

if sys.platform == "win32":
    import _winapi
else:
    _winapi = None

log = logging.getLogger(__name__)

SIGKILL_NUMBER = 9


class ReapOutcome(enum.Enum):
    """Result of one attempt to collect a process's exit status."""
    REAPED = "reaped"
    ALREADY_REAPED = "already_reaped"
    STILL_RUNNING = "still_running"


class NativeProcess:
    """The OS-level process reference held by a handle until it is reaped."""

    def __init__(self, popen: subprocess.Popen, inspector: Optional[psutil.Process] = None) -> None:
        self.popen = popen
        self.pid: int = popen.pid
        self.inspector = inspector
        self.forcefully_terminated = False

    def __repr__(self) -> str:
        return f"NativeProcess(pid={self.pid})"


class NativeBackend(ABC):
    """Capability set every platform backend provides."""

    name = "abstract"
    forceful_signal = SIGKILL_NUMBER

    @abstractmethod
    def create(
        self,
        command: Union[str, List[str]],
        executable: Optional[str],
        cwd: Optional[str],
        streams: Dict[str, Any],
    ) -> NativeProcess:
        """Creates the process. Raises CreationError if the OS refuses."""

    @abstractmethod
    def wait(self, native: NativeProcess, timeout: Optional[float]) -> Tuple[ReapOutcome, Optional[int]]:
        """
        Waits up to `timeout` seconds (0 polls, None blocks) for the process to exit.

        :return: The outcome and, unless still running, the composite status word.
        """

    @abstractmethod
    def send_graceful(self, native: NativeProcess) -> None:
        """Asks the process to terminate; the process may intercept the request."""

    @abstractmethod
    def send_forceful(self, native: NativeProcess) -> None:
        """Terminates the process unconditionally."""

    def _popen(self, command: Union[str, List[str]], shell: bool, executable: Optional[str],
               cwd: Optional[str], streams: Dict[str, Any], **popen_kwargs: Any) -> subprocess.Popen:
        try:
            return subprocess.Popen(command, shell=shell, executable=executable, cwd=cwd, **streams, **popen_kwargs)
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            raise CreationError(f"Failed to create process for {command!r}: {e}") from e


class PosixBackend(NativeBackend):
    """fork/exec through subprocess, waitpid through psutil, termination by signal."""

    name = "posix"
    forceful_signal = getattr(signal, "SIGKILL", SIGKILL_NUMBER)

    def create(self, command, executable, cwd, streams) -> NativeProcess:
        # A single command line goes to /bin/sh; an argument vector is exec'd directly.
        shell = isinstance(command, str)
        popen = self._popen(command, shell, None if shell else executable, cwd, streams)
        try:
            inspector = psutil.Process(popen.pid)
        except psutil.Error as e:
            popen.kill()
            popen.wait()
            raise CreationError(f"Created process {popen.pid} could not be inspected: {e}") from e
        return NativeProcess(popen, inspector)

    def wait(self, native, timeout):
        try:
            returncode = native.inspector.wait(timeout=timeout)
        except psutil.TimeoutExpired:
            return ReapOutcome.STILL_RUNNING, None
        except psutil.NoSuchProcess:
            returncode = None
        except ValueError as e:
            raise ReapContractError(f"Unexpected wait status for pid {native.pid}: {e}") from e

        # Keep subprocess from waiting on this pid again once it may have been recycled.
        native.popen.returncode = 0 if returncode is None else int(returncode)

        if returncode is None:
            # Status was consumed elsewhere (e.g. a SIGCHLD handler); the process is gone.
            return ReapOutcome.ALREADY_REAPED, 0
        return ReapOutcome.REAPED, status.from_returncode(returncode)

    def _send(self, native: NativeProcess, signum: int) -> None:
        # os.kill rather than Popen.send_signal: the latter polls first, which would
        # consume the exit status outside the reap path.
        try:
            os.kill(native.pid, signum)
        except ProcessLookupError:
            log.debug(f"Signal {signum} not delivered, pid {native.pid} no longer exists.")

    def send_graceful(self, native):
        self._send(native, signal.SIGTERM)

    def send_forceful(self, native):
        self._send(native, self.forceful_signal)


class WindowsBackend(NativeBackend):
    """
    CreateProcess through subprocess, WaitForSingleObject on the process handle,
    and TerminateProcess for both termination actions.

    Windows has no interceptable termination request for arbitrary processes, so the
    graceful action degrades to the forceful one. An exit observed after this
    backend called TerminateProcess is reported as signal 9, like SIGKILL.
    """

    name = "windows"
    # Exit code handed to TerminateProcess; unlikely to be chosen by a program itself.
    TERMINATE_EXIT_CODE = 256

    def create(self, command, executable, cwd, streams) -> NativeProcess:
        # A single string is handed to CreateProcess as the command line, which
        # locates the program itself; an argument vector is quoted by subprocess.
        popen = self._popen(command, False, executable, cwd, streams)
        return NativeProcess(popen)

    def wait(self, native, timeout):
        try:
            exit_code = native.popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return ReapOutcome.STILL_RUNNING, None

        if native.forcefully_terminated and exit_code == self.TERMINATE_EXIT_CODE:
            return ReapOutcome.REAPED, status.from_signal(SIGKILL_NUMBER)
        if exit_code < 0:
            raise ReapContractError(f"Unexpected exit code {exit_code} for pid {native.pid}")
        return ReapOutcome.REAPED, status.from_exit_code(exit_code)

    def send_graceful(self, native):
        self.send_forceful(native)

    def send_forceful(self, native):
        handle = native.popen._handle
        try:
            _winapi.TerminateProcess(handle, self.TERMINATE_EXIT_CODE)
        except PermissionError:
            # Access is denied once the process has exited on its own.
            if _winapi.GetExitCodeProcess(handle) == _winapi.STILL_ACTIVE:
                raise
            log.debug(f"TerminateProcess skipped, pid {native.pid} already exited.")
            return
        native.forcefully_terminated = True


_backend: Optional[NativeBackend] = None


def get_backend() -> NativeBackend:
    """Returns the backend for this platform, selecting it on first use."""
    global _backend
    if _backend is None:
        _backend = WindowsBackend() if sys.platform == "win32" else PosixBackend()
        log.debug(f"Selected native process backend: {_backend.name}")
    return _backend
