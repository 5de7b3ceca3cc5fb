import logging
import sys


class MainFormatter(logging.Formatter):
    """A formatter that prints library records with their logger name and level."""

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s')


def setup_logging(console_level: int = logging.INFO) -> None:
    """
    Configures the root logger for a procbg entry point.
    Clears any previously configured handlers to prevent duplication and installs
    a single console handler on stdout. The library modules never call this;
    it is meant for scripts such as `timed-process`.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(console_level)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)
