"""
Binding of the child's standard streams.

Each of stdin/stdout/stderr accepts one of:

- ``INHERIT`` (the default): the child shares the parent's stream. Both
  backends create the child through subprocess.Popen, so on POSIX the child
  inherits the parent's file descriptors 0-2 and on Windows it inherits the
  parent's console standard handles.
- ``None`` or ``DISCARD``: the platform null device (/dev/null or NUL).
- a path (str or os.PathLike): opened for reading for stdin and for appending
  for stdout/stderr.
- an open handle (an int file descriptor or any object with ``fileno()``): the
  child receives a duplicate; the caller's handle stays open and owned by the caller.
"""
import os
import logging
import subprocess
from contextlib import ExitStack, contextmanager
from typing import Any, Dict, Iterator

from procbg.background.errors import CreationError

log = logging.getLogger(__name__)


class _Inherit:
    """Sentinel type for an unset stream binding."""

    def __repr__(self) -> str:
        return "INHERIT"


INHERIT = _Inherit()
DISCARD = subprocess.DEVNULL

STREAM_NAMES = ("stdin", "stdout", "stderr")


def _fileno_of(name: str, target: Any) -> int:
    """Returns a validated file descriptor for an already-open handle."""
    try:
        fd = target if isinstance(target, int) else target.fileno()
        os.fstat(fd)
    except (OSError, ValueError, AttributeError) as e:
        raise CreationError(f"Bad handle for {name}: {target!r} ({e})") from e
    return fd


def _bind_one(name: str, target: Any, stack: ExitStack) -> Any:
    """Translates one declarative binding into the value Popen expects."""
    if target is INHERIT:
        return None
    if target is None or target is DISCARD:
        return subprocess.DEVNULL
    if isinstance(target, (str, os.PathLike)):
        mode = "rb" if name == "stdin" else "ab"
        try:
            handle = stack.enter_context(open(target, mode))
        except OSError as e:
            raise CreationError(f"Can't open {os.fspath(target)!r} for {name}: {e}") from e
        log.debug(f"Bound {name} to file {os.fspath(target)!r} ({mode})")
        return handle.fileno()
    if isinstance(target, bool):
        raise CreationError(f"Bad handle for {name}: {target!r}")
    return _fileno_of(name, target)


@contextmanager
def bound_streams(stdin: Any = INHERIT, stdout: Any = INHERIT, stderr: Any = INHERIT) -> Iterator[Dict[str, Any]]:
    """
    Opens whatever the bindings require and yields Popen keyword arguments.

    Files opened here are closed when the block exits, whether the process was
    created or not; the child keeps its own duplicates. If any binding fails,
    everything opened so far is closed before CreationError propagates.

    :raises CreationError: If a path cannot be opened or a handle is invalid.
    """
    with ExitStack() as stack:
        popen_kwargs = {
            name: _bind_one(name, target, stack)
            for name, target in zip(STREAM_NAMES, (stdin, stdout, stderr))
        }
        yield popen_kwargs
