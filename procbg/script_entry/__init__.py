"""Command-line entry points shipped with procbg."""
