"""
Logging module for procbg.
This module provides the console logging setup used by the entry point scripts.
"""

from .setup import setup_logging, MainFormatter

__all__ = ["setup_logging", "MainFormatter"]
