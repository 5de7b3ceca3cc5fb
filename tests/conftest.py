"""Shared pytest fixtures for the procbg test suite."""

import sys
import time
import logging
from typing import Callable, List

import pytest

import procbg


@pytest.fixture
def py() -> Callable[..., List[str]]:
    """Builds an argument vector that runs a Python snippet in a child interpreter."""

    def _argv(code: str, *args: str) -> List[str]:
        return [sys.executable, "-c", code, *args]

    return _argv


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Polls `predicate` until it is true or `timeout` seconds have passed."""

    def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait_until


@pytest.fixture
def launched():
    """Starts processes through procbg.start and force-kills leftovers after the test."""
    processes = []

    def _start(*args, **kwargs):
        process = procbg.start(*args, **kwargs)
        if process is not None:
            processes.append(process)
        return process

    yield _start

    for process in processes:
        if process.status is None:
            process.terminate(["forceful", 5])


@pytest.fixture
def root_logging():
    """Restores the root logger's handlers and level after a test reconfigures logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
