"""Tests for running a command under a time limit."""

import sys
import time
import signal

import pytest

from procbg import ConfigurationError, timeout_system


def test_command_finishing_in_time(py):
    result = timeout_system(10, py("import sys; sys.exit(3)"))

    assert result.status == 3 << 8
    assert result.killed is False


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")
def test_command_running_too_long_is_terminated(py):
    started = time.monotonic()
    status_word, killed = timeout_system(0.5, py("import time; time.sleep(30)"))

    assert killed is True
    assert status_word & 0x7F == signal.SIGTERM
    assert time.monotonic() - started < 5


def test_full_timeout_is_granted(py):
    result = timeout_system(10, py("import time; time.sleep(0.5)"))

    assert result == (0, False)


def test_zero_timeout_terminates_immediately(py):
    result = timeout_system(0, py("import time; time.sleep(30)"))

    assert result.killed is True
    assert result.status is not None


@pytest.mark.parametrize("timeout", [-1, "5", None, True, float("nan"), float("inf")])
def test_bad_timeout_is_rejected(py, timeout):
    with pytest.raises(ConfigurationError):
        timeout_system(timeout, py("pass"))


def test_command_that_cannot_start():
    assert timeout_system(1, ["definitely-not-a-real-program-xyz"]) is None
