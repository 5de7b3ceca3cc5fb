"""
This module contains the default configuration settings for procbg.
It defines the kill escalation defaults, reap/wait tuning and the settings used by
the `timed-process` entry point. Values can be overridden from the environment
(or a `.env` file) and, for the keys in MODIFIABLE_SETTINGS, from a JSON overrides file.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

#* --- Core Paths ---
BASE_DIR = pathlib.Path.cwd()
OVERRIDES_JSON_PATH = pathlib.Path(os.getenv("PROCBG_OVERRIDES_PATH", str(BASE_DIR / "procbg_overrides.json")))

#* --- Kill Escalation ---
# Flat list of (action, grace seconds) pairs. Graceful is SIGTERM on POSIX,
# forceful is SIGKILL; on Windows both call TerminateProcess.
DEFAULT_KILL_SEQUENCE = ("graceful", 2, "graceful", 8, "forceful", 3, "forceful", 7)

#* --- Reaping & Waiting ---
# Upper bound for the pause between two non-blocking reap attempts of a blocking wait.
REAP_POLL_MAX_INTERVAL = float(os.getenv("PROCBG_REAP_POLL_MAX_INTERVAL", "0.05"))
# Consecutive interrupted waits tolerated before a wait gives up early.
WAIT_MAX_INTERRUPTS = int(os.getenv("PROCBG_WAIT_MAX_INTERRUPTS", "100"))

#* --- timed-process Entry Point ---
TIMED_PROCESS_EXIT_STATUS = int(os.getenv("PROCBG_TIMED_PROCESS_EXIT_STATUS", "255"))
TIMED_PROCESS_START_FAILURE_STATUS = 127
VERBOSE_LOGGING = os.getenv("PROCBG_VERBOSE", "False").lower() in ('true', '1', 't')

#* --- Runtime Modifiable Settings ---
MODIFIABLE_SETTINGS = {
    "DEFAULT_KILL_SEQUENCE", "REAP_POLL_MAX_INTERVAL", "WAIT_MAX_INTERRUPTS",
    "TIMED_PROCESS_EXIT_STATUS", "VERBOSE_LOGGING",
}
