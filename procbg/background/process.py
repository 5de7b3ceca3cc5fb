import time
import logging
import threading
from typing import List, Optional, Union

from procbg.config import effective_settings as config
from procbg.background import registry, status, waiter
from procbg.background.kill import FORCEFUL, GRACEFUL, escalate
from procbg.background.backends import NativeBackend, NativeProcess, ReapOutcome
from procbg.background.errors import ReapContractError

log = logging.getLogger(__name__)


class BackgroundProcess:
    """
    Handle for one process running in the background.

    A handle is either running (it holds the native process reference) or
    exited (it holds the composite exit status); the transition happens once,
    in the reap path, under the handle's reap lock. Every call that can observe
    the exit (`is_alive`, `reap`, `wait`, `terminate`) goes through that path,
    so the OS exit status is consumed by exactly one caller and cached.

    The reap lock is only ever held for non-blocking OS calls. Blocking waits
    sleep on the lock's condition between polls and are woken as soon as any
    thread records the exit, so a `terminate` from another thread is never
    held up by a thread blocked in `wait`.

    Handles are created by `procbg.start()`; nothing here starts a process.
    """

    def __init__(
        self,
        command: Union[str, List[str]],
        exe: Optional[str],
        native: NativeProcess,
        backend: NativeBackend,
        kill_on_release: bool = False,
    ) -> None:
        self._command = command
        self._exe = exe
        self._native: Optional[NativeProcess] = native
        self._backend = backend
        self._pid: int = native.pid
        self._status: Optional[int] = None
        self._start_time: int = int(time.time())
        self._end_time: Optional[int] = None
        self._reap_lock = threading.Condition()
        self._kill_on_release = bool(kill_on_release)
        self._released = False

        if self._kill_on_release:
            registry.register(self)

    def __repr__(self) -> str:
        state = "running" if self._status is None else f"exited status={self._status}"
        return f"<BackgroundProcess pid={self._pid} {state} command={self._command!r}>"

    #* --- Attributes ---
    @property
    def pid(self) -> int:
        """The process ID, kept after the process has exited."""
        return self._pid

    @property
    def command(self) -> Union[str, List[str]]:
        return self._command

    @property
    def exe(self) -> Optional[str]:
        """Resolved executable path; None for a command line handed to the shell."""
        return self._exe

    @property
    def start_time(self) -> int:
        return self._start_time

    @property
    def end_time(self) -> Optional[int]:
        return self._end_time

    @property
    def status(self) -> Optional[int]:
        """The composite exit status word, or None while running."""
        return self._status

    @property
    def exit_code(self) -> Optional[int]:
        """
        The exit code, or None while running.
        This is 0 when the process died by a signal, so check `exit_signal` first.
        """
        return status.exit_code(self._status)

    @property
    def exit_signal(self) -> Optional[int]:
        """The terminating signal, 0 for a normal exit, or None while running."""
        return status.exit_signal(self._status)

    #* --- Reaping ---
    def _record_exit(self, status_word: int) -> None:
        """Running -> Exited. Must be called with the reap lock held."""
        self._status = status_word
        self._native = None
        self._end_time = int(time.time())
        self._reap_lock.notify_all()
        log.info(
            f"Process {self._pid} exited (status={status_word}, "
            f"code={status.exit_code(status_word)}, signal={status.exit_signal(status_word)})."
        )

    def _pause(self, seconds: float) -> None:
        """Sleeps up to `seconds`, waking early once another thread records the exit."""
        with self._reap_lock:
            if self._native is not None:
                self._reap_lock.wait(seconds)

    def _reap_once(self) -> ReapOutcome:
        """Makes one non-blocking reap attempt."""
        with self._reap_lock:
            if self._native is None:
                return ReapOutcome.ALREADY_REAPED

            outcome, status_word = self._backend.wait(self._native, 0)
            if outcome is ReapOutcome.STILL_RUNNING:
                return outcome
            if outcome is ReapOutcome.ALREADY_REAPED:
                log.warning(f"Exit status of process {self._pid} was collected elsewhere; recording status 0.")
                self._record_exit(0)
                return outcome
            if outcome is ReapOutcome.REAPED and status_word is not None:
                self._record_exit(status_word)
                return outcome
            raise ReapContractError(f"Backend returned {outcome!r} with status {status_word!r} for pid {self._pid}")

    def reap(self, blocking: bool = False, timeout: Optional[float] = None) -> ReapOutcome:
        """
        Tries to collect the exit status.

        :param blocking: If False, poll once without blocking.
        :param timeout: Seconds to block when `blocking`; None blocks until exit.
        :return: REAPED if this call collected the status, ALREADY_REAPED if the
                 handle had exited already (or the status was consumed elsewhere),
                 STILL_RUNNING otherwise. STILL_RUNNING never changes state.
        """
        if not blocking:
            return self._reap_once()
        return waiter.reap_within(
            self._reap_once,
            self._pause,
            timeout,
            max_interval=config.REAP_POLL_MAX_INTERVAL,
            max_interrupts=config.WAIT_MAX_INTERRUPTS,
        )

    def is_alive(self) -> bool:
        """Returns True if the process is still running. Polling this reaps an exited process."""
        if self._status is not None:
            return False
        self.reap(blocking=False)
        return self._status is None

    alive = is_alive

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        Waits for the process to exit and returns its composite status word.

        Once the process has been reaped, the cached status is returned without
        touching the OS.

        :param timeout: Seconds to wait; None waits indefinitely, 0 only polls.
        :return: The status word, or None if the process is still running at the timeout.
        """
        if self._status is not None:
            return self._status
        self.reap(blocking=True, timeout=timeout)
        return self._status

    #* --- Termination ---
    def send_action(self, action: str) -> bool:
        """
        Delivers one termination action, unless the process was reaped already.

        :param action: GRACEFUL or FORCEFUL.
        :return: True if the action was delivered.
        """
        with self._reap_lock:
            if self._native is None:
                return False
            if action == GRACEFUL:
                self._backend.send_graceful(self._native)
            elif action == FORCEFUL:
                self._backend.send_forceful(self._native)
            else:
                raise ValueError(f"Unknown termination action {action!r}")
            return True

    def terminate(self, sequence=None) -> bool:
        """
        Reliably terminates the process; see `procbg.background.kill.escalate`.

        :param sequence: Kill sequence such as ``["graceful", 2, "forceful", 3]``.
        :return: True if the process no longer runs.
        """
        return escalate(self, sequence)

    kill = terminate
    die = terminate

    #* --- Release ---
    def release(self) -> None:
        """
        Gives up the handle. With kill_on_release, the process is terminated first.
        Calling this more than once has no further effect.
        """
        if self._released:
            return
        self._released = True
        if self._kill_on_release:
            try:
                self.terminate()
            finally:
                registry.unregister(self)

    def __enter__(self) -> "BackgroundProcess":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def __del__(self) -> None:
        if getattr(self, "_kill_on_release", False):
            self.release()
