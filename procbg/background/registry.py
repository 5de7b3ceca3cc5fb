"""
Process-wide registry of handles created with kill_on_release.

The registry holds weak references only, so it never keeps a handle alive.
`shutdown()` is registered with atexit and terminates whatever is still
registered before the interpreter starts tearing modules down.
"""
import atexit
import logging
import threading
import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .process import BackgroundProcess

log = logging.getLogger(__name__)

_kill_on_release = weakref.WeakValueDictionary()
_registry_lock = threading.RLock()


def register(process: "BackgroundProcess") -> None:
    with _registry_lock:
        _kill_on_release[id(process)] = process


def unregister(process: "BackgroundProcess") -> None:
    with _registry_lock:
        if _kill_on_release.get(id(process)) is process:
            del _kill_on_release[id(process)]


def registered_count() -> int:
    with _registry_lock:
        return len(_kill_on_release)


def shutdown() -> None:
    """Terminates and releases every registered process."""
    with _registry_lock:
        processes = list(_kill_on_release.values())
        _kill_on_release.clear()

    if processes:
        log.info(f"Terminating {len(processes)} process(es) marked kill_on_release.")
    for process in processes:
        process.release()


atexit.register(shutdown)
