"""
Helpers for the composite exit status word.

The status word has the same layout as the POSIX wait() status: the exit code
lives in the bits above the low byte (``status >> 8``) and the terminating
signal in the low seven bits (``status & 0x7F``).
"""
from typing import Optional

SIGNAL_MASK = 0x7F


def from_exit_code(code: int) -> int:
    """Status word for a process that exited normally with `code`."""
    return code << 8


def from_signal(signum: int) -> int:
    """Status word for a process that was terminated by `signum`."""
    return signum & SIGNAL_MASK


def from_returncode(returncode: int) -> int:
    """
    Converts a decoded return code (negative for signals, as reported by
    subprocess and psutil) back into a status word.

    :param returncode: The decoded return code.
    :return: The composite status word.
    """
    returncode = int(returncode)
    if returncode < 0:
        return from_signal(-returncode)
    return from_exit_code(returncode)


def exit_code(status: Optional[int]) -> Optional[int]:
    if status is None:
        return None
    return status >> 8


def exit_signal(status: Optional[int]) -> Optional[int]:
    if status is None:
        return None
    return status & SIGNAL_MASK
