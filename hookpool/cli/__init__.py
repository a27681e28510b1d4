"""hookpool CLI — Typer-based command-line interface.

Provides the ``hookpool`` command with subcommands for running the
webhook pool, validating a config file, and previewing a burst plan.

All output uses Rich for formatted terminal display.
"""
