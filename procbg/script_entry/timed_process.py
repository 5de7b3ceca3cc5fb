"""
Entry point for the `timed-process` command.

    timed-process [-e EXIT_STATUS] [--verbose] TIMEOUT COMMAND [ARG ...]

Runs COMMAND for at most TIMEOUT seconds. If it has to be terminated, exits with
EXIT_STATUS (255 unless configured otherwise); otherwise exits with the
command's own exit code, or 128 + signal if it died by a signal. A single
COMMAND argument is treated as a command line and run by the shell.
"""
import sys
import logging
from typing import List, Optional

from procbg.config import effective_settings as config
from procbg.log.setup import setup_logging
from procbg.background import status
from procbg.background.errors import ConfigurationError
from procbg.background.system import timeout_system

log = logging.getLogger(__name__)

USAGE = "Usage: timed-process [-e EXIT_STATUS] [--verbose] TIMEOUT COMMAND [ARG ...]"


def _parse_args(args: List[str]):
    """Splits the arguments into (exit_status, verbose, timeout, command)."""
    exit_status = config.TIMED_PROCESS_EXIT_STATUS
    verbose = config.VERBOSE_LOGGING

    while args and args[0].startswith("-"):
        flag = args.pop(0)
        if flag == "--":
            break
        if flag == "--verbose":
            verbose = True
        elif flag == "-e" and args:
            exit_status = int(args.pop(0))
        else:
            raise ValueError(f"Unknown option '{flag}'")

    if len(args) < 2:
        raise ValueError("TIMEOUT and COMMAND are required")

    timeout = float(args[0])
    command = args[1] if len(args) == 2 else args[1:]
    return exit_status, verbose, timeout, command


def main(argv: Optional[List[str]] = None) -> int:
    """
    Runs `timed-process` with the given arguments.

    :param argv: Arguments without the program name; defaults to sys.argv[1:].
    :return: The exit status for the calling shell.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        exit_status, verbose, timeout, command = _parse_args(args)
    except ValueError as e:
        print(f"timed-process: {e}\n{USAGE}", file=sys.stderr)
        return 2

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        result = timeout_system(timeout, command)
    except ConfigurationError as e:
        print(f"timed-process: {e}\n{USAGE}", file=sys.stderr)
        return 2

    if result is None:
        log.error(f"Could not start {command!r}")
        return config.TIMED_PROCESS_START_FAILURE_STATUS

    if result.killed:
        log.warning(f"Command {command!r} ran longer than {timeout}s and was terminated.")
        return exit_status

    signal_number = status.exit_signal(result.status)
    if signal_number:
        return 128 + signal_number
    return status.exit_code(result.status)


if __name__ == "__main__":
    sys.exit(main())
