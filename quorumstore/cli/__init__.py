"""QuorumStore CLI — Typer-based command-line interface.

Provides the ``quorumstore`` command with subcommands for running the
protocol demo, generating operator keys, and inspecting the journal.

All output uses Rich for formatted terminal display.
"""
