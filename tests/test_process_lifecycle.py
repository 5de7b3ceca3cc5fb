"""Lifecycle tests against real child processes."""

import os
import sys
import time
import signal
import threading

import pytest

from procbg import ConfigurationError, ReapOutcome

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")

SLEEP_FOREVER = "import time; time.sleep(30)"


def test_alive_right_after_start_and_not_alive_after_exit(launched, py, wait_until):
    proc = launched(py("import time; time.sleep(0.3)"))
    assert proc is not None
    assert proc.pid > 0
    assert proc.is_alive()
    assert proc.status is None
    assert proc.exit_code is None
    assert proc.exit_signal is None
    assert proc.end_time is None

    assert wait_until(lambda: not proc.is_alive(), timeout=10)
    assert proc.exit_code == 0
    assert proc.exit_signal == 0
    assert proc.end_time >= proc.start_time


def test_exit_code_is_reported(launched, py):
    proc = launched(py("import sys; sys.exit(3)"))

    assert proc.wait(timeout=10) == 3 << 8
    assert proc.exit_code == 3
    assert proc.exit_signal == 0


def test_pid_survives_exit(launched, py):
    proc = launched(py("pass"))
    pid = proc.pid
    proc.wait(timeout=10)
    assert proc.pid == pid


@posix_only
def test_forceful_kill_reports_signal(launched, py):
    proc = launched(py(SLEEP_FOREVER))

    assert proc.terminate(["forceful", 5]) is True
    assert proc.exit_signal == signal.SIGKILL
    assert proc.exit_code == 0


@posix_only
def test_default_sequence_starts_gracefully(launched, py):
    proc = launched(py(SLEEP_FOREVER))

    started = time.monotonic()
    assert proc.terminate() is True
    assert time.monotonic() - started < 2.5
    assert proc.exit_signal == signal.SIGTERM


def test_wait_twice_returns_cached_status(launched, py, monkeypatch):
    proc = launched(py("import sys; sys.exit(5)"))
    first = proc.wait()

    def _no_os_access(*args, **kwargs):
        raise AssertionError("wait after reap must not touch the OS")

    monkeypatch.setattr(proc._backend, "wait", _no_os_access)
    assert proc.wait() == first
    assert proc.wait(timeout=0) == first
    assert first == 5 << 8


def test_terminate_on_exited_handle_has_no_side_effects(launched, py, monkeypatch):
    proc = launched(py("pass"))
    proc.wait(timeout=10)

    def _no_signal(*args, **kwargs):
        raise AssertionError("no termination action expected")

    monkeypatch.setattr(proc._backend, "send_graceful", _no_signal)
    monkeypatch.setattr(proc._backend, "send_forceful", _no_signal)
    assert proc.terminate() is True
    assert proc.kill() is True
    assert proc.status == 0


def test_wait_timeout_is_bounded(launched, py):
    proc = launched(py(SLEEP_FOREVER))

    started = time.monotonic()
    assert proc.wait(timeout=0.5) is None
    elapsed = time.monotonic() - started

    assert 0.45 <= elapsed < 1.0
    assert proc.is_alive()
    assert proc.status is None


def test_zero_timeout_only_polls(launched, py):
    proc = launched(py(SLEEP_FOREVER))

    started = time.monotonic()
    assert proc.wait(timeout=0) is None
    assert time.monotonic() - started < 0.5
    assert proc.reap() is ReapOutcome.STILL_RUNNING


@posix_only
def test_escalation_kills_process_ignoring_graceful_action(launched, py, tmp_path, wait_until):
    ready = tmp_path / "ready"
    code = (
        "import signal, sys, time\n"
        "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
        "open(sys.argv[1], 'w').close()\n"
        "time.sleep(30)\n"
    )
    proc = launched(py(code, str(ready)))
    assert wait_until(ready.exists, timeout=10)

    started = time.monotonic()
    assert proc.terminate(["graceful", 0.5, "graceful", 0.5, "forceful", 2]) is True
    elapsed = time.monotonic() - started

    assert elapsed < 3.0 + 1.0
    assert proc.exit_signal == signal.SIGKILL
    assert not proc.is_alive()


def test_terminate_releases_a_concurrent_wait(launched, py):
    proc = launched(py(SLEEP_FOREVER))
    results = []
    waiter = threading.Thread(target=lambda: results.append(proc.wait()), daemon=True)
    waiter.start()
    time.sleep(0.3)

    assert proc.terminate() is True
    waiter.join(timeout=5)

    assert not waiter.is_alive()
    assert results == [proc.status]


def test_concurrent_waiters_see_the_same_status(launched, py):
    proc = launched(py("import sys, time; time.sleep(0.5); sys.exit(7)"))
    results = []
    lock = threading.Lock()

    def _wait():
        status_word = proc.wait(timeout=10)
        with lock:
            results.append(status_word)

    threads = [threading.Thread(target=_wait) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=15)

    assert results == [7 << 8] * 5


def test_reap_after_exit_reports_already_reaped(launched, py):
    proc = launched(py("pass"))
    assert proc.reap(blocking=True, timeout=10) is ReapOutcome.REAPED
    assert proc.reap() is ReapOutcome.ALREADY_REAPED
    assert proc.reap(blocking=True) is ReapOutcome.ALREADY_REAPED


@posix_only
def test_status_consumed_by_external_reaper(launched, py):
    proc = launched(py("import sys; sys.exit(9)"))
    os.waitpid(proc.pid, 0)

    assert proc.reap(blocking=True, timeout=5) is ReapOutcome.ALREADY_REAPED
    assert proc.status == 0
    assert proc.exit_code == 0
    assert proc.exit_signal == 0
    assert not proc.is_alive()


def test_nan_timeout_fails_fast(launched, py):
    proc = launched(py(SLEEP_FOREVER))

    started = time.monotonic()
    with pytest.raises(ConfigurationError):
        proc.wait(timeout=float("nan"))
    assert time.monotonic() - started < 1.0
    assert proc.is_alive()


@posix_only
def test_nan_grace_period_is_rejected_before_signalling(launched, py):
    proc = launched(py(SLEEP_FOREVER))

    with pytest.raises(ConfigurationError):
        proc.terminate("TERM nan KILL 1")
    assert proc.is_alive()
