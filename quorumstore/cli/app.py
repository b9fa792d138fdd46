"""Main Typer application — imports and registers all CLI commands.

Entry point: ``quorumstore`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer

from quorumstore.cli.commands.demo import demo_cmd
from quorumstore.cli.commands.journal_cmd import journal_cmd, verify_cmd
from quorumstore.cli.commands.keygen import keygen_cmd
from quorumstore.config import config

app = typer.Typer(
    name="quorumstore",
    help="QuorumStore: stake-weighted data availability attestation.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Override QUORUMSTORE_LOG_LEVEL for this invocation."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
app.command(name="demo", help="Run the protocol end to end with three operators.")(demo_cmd)
app.command(name="keygen", help="Generate an operator Ed25519 key pair.")(keygen_cmd)
app.command(name="journal", help="Show the journal entries of a ledger.")(journal_cmd)
app.command(name="verify", help="Verify a ledger's journal hash chain.")(verify_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
