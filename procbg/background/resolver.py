import os
import sys
import logging
from typing import List, Optional

log = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"


def _candidate_suffixes() -> List[str]:
    """Returns the suffixes tried for each candidate path ('.exe' is only tried on Windows)."""
    return ["", ".exe"] if IS_WINDOWS else [""]


def _has_dir_element(command: str) -> bool:
    if IS_WINDOWS:
        return "/" in command or "\\" in command
    return os.sep in command


def _first_executable(base: str) -> Optional[str]:
    """Returns the first `base + suffix` that is a regular file with execute permission."""
    for suffix in _candidate_suffixes():
        candidate = base + suffix
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return None


def resolve_path(command: str) -> Optional[str]:
    """
    Resolves a program name or path to an absolute path of an executable file.

    - Absolute paths are checked as given.
    - Relative paths containing a directory element are taken relative to the
      current working directory of this process (not the child's `cwd`).
    - Bare names are searched for in each PATH entry; relative PATH entries are
      taken relative to the current working directory.

    :param command: The program name or path.
    :return: The absolute executable path, or None if nothing executable was found.
    """
    if not command:
        return None

    if os.path.isabs(command):
        path = _first_executable(command)
        if path is None:
            log.warning(f"No executable program located at {command}")
        return path

    cwd = os.getcwd()
    if _has_dir_element(command):
        path = _first_executable(os.path.join(cwd, command))
    else:
        path = None
        for directory in os.environ.get("PATH", "").split(os.pathsep):
            if not directory:
                continue
            if not os.path.isabs(directory):
                directory = os.path.join(cwd, directory)
            path = _first_executable(os.path.join(directory, command))
            if path is not None:
                break

    if path is None:
        log.warning(f"Cannot find absolute location of {command}")
    return path
