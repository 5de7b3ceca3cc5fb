import os
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from procbg.background.backends import NativeBackend, NativeProcess, get_backend
from procbg.background.errors import ConfigurationError, CreationError, ResolutionError
from procbg.background.process import BackgroundProcess
from procbg.background.resolver import resolve_path
from procbg.background.streams import INHERIT, bound_streams

log = logging.getLogger(__name__)

AVAILABLE_OPTIONS = frozenset({
    "command", "exe", "cwd", "stdin", "stdout", "stderr",
    "kill_on_release", "kill_upon_destroy", "die_upon_destroy",
})

# Older option names for kill_on_release.
KILL_ON_RELEASE_ALIASES = ("kill_upon_destroy", "die_upon_destroy")


def normalize_command(command: Any) -> Union[str, List[str]]:
    """
    Validates the command value.

    A string is a single command line; a list or tuple is an argument vector.

    :raises ConfigurationError: If the command is empty or not made of strings.
    """
    if isinstance(command, str):
        if not command:
            raise ConfigurationError("command must be a non-empty string or a list of strings")
        return command

    if isinstance(command, (list, tuple)):
        argv = [os.fspath(arg) if isinstance(arg, os.PathLike) else arg for arg in command]
        if argv and all(isinstance(arg, str) for arg in argv) and argv[0]:
            return argv

    raise ConfigurationError("command must be a non-empty string or a list of strings")


def launch(
    command: Union[str, List[str]],
    exe: Optional[str] = None,
    cwd: Optional[str] = None,
    stdin: Any = INHERIT,
    stdout: Any = INHERIT,
    stderr: Any = INHERIT,
    backend: Optional[NativeBackend] = None,
) -> Tuple[NativeProcess, Optional[str]]:
    """
    Creates the native process for an already validated command.

    An argument vector has its executable (`exe`, or else argv[0]) resolved to an
    absolute path first; a command line is left to the shell to resolve.

    :return: The native process and the resolved executable path (None for a command line).
    :raises ResolutionError: If the executable cannot be found.
    :raises CreationError: If cwd is missing, a stream cannot be bound, or the OS refuses.
    """
    backend = backend or get_backend()

    resolved = None
    if isinstance(command, list):
        target = exe if exe is not None else command[0]
        resolved = resolve_path(target)
        if resolved is None:
            raise ResolutionError(f"Cannot find an executable for {target!r}")

    if cwd is not None and not os.path.isdir(cwd):
        raise CreationError(f"Working directory {cwd!r} does not exist")

    with bound_streams(stdin, stdout, stderr) as popen_streams:
        native = backend.create(command, resolved, cwd, popen_streams)
    return native, resolved


def start(
    command: Union[str, List[str]],
    *,
    exe: Optional[str] = None,
    cwd: Optional[str] = None,
    stdin: Any = INHERIT,
    stdout: Any = INHERIT,
    stderr: Any = INHERIT,
    kill_on_release: bool = False,
) -> Optional[BackgroundProcess]:
    """
    Starts a process in the background.

    :param command: A command line string (run by the shell on POSIX) or an argument list.
    :param exe: Executable to run instead of argv[0]; argv[0] is still passed to the program.
                Only valid with an argument list.
    :param cwd: Working directory for the child; must already exist.
    :param stdin: Stream binding, see `procbg.background.streams`.
    :param stdout: Stream binding, see `procbg.background.streams`.
    :param stderr: Stream binding, see `procbg.background.streams`.
    :param kill_on_release: Terminate the process when the handle is released or
                            collected, or when the interpreter exits.
    :return: The process handle, or None if the executable could not be resolved
             or the process could not be created.
    :raises ConfigurationError: For invalid or conflicting options.
    """
    command = normalize_command(command)
    if exe is not None:
        if isinstance(command, str):
            raise ConfigurationError(
                "Can't combine 'exe' with a single-string 'command'; use a list 'command' instead."
            )
        exe = os.fspath(exe)
    if cwd is not None:
        cwd = os.fspath(cwd)

    try:
        native, resolved = launch(command, exe, cwd, stdin, stdout, stderr)
    except (ResolutionError, CreationError) as e:
        log.error(f"Failed to start {command!r}: {e}")
        return None

    process = BackgroundProcess(command, resolved, native, get_backend(), kill_on_release=kill_on_release)
    log.info(f"Started process {process.pid}: {command!r}")
    return process


def start_with_options(options: Dict[str, Any]) -> Optional[BackgroundProcess]:
    """
    Starts a process from a dictionary of named options.

    Recognised keys are those in AVAILABLE_OPTIONS; `kill_upon_destroy` and
    `die_upon_destroy` are aliases of `kill_on_release`.

    :raises ConfigurationError: For unknown keys, a missing command, or invalid values.
    """
    unknown = set(options) - AVAILABLE_OPTIONS
    if unknown:
        raise ConfigurationError(f"Unknown options: {', '.join(sorted(unknown))}")
    if "command" not in options:
        raise ConfigurationError("The 'command' option is required")

    kwargs = dict(options)
    command = kwargs.pop("command")
    aliased = any([kwargs.pop(name, False) for name in KILL_ON_RELEASE_ALIASES])
    kwargs["kill_on_release"] = bool(kwargs.get("kill_on_release") or aliased)
    return start(command, **kwargs)
