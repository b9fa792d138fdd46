"""``quorumstore keygen`` — generate an operator Ed25519 key pair."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from quorumstore.bridge.crypto_bridge import generate_keypair, key_fingerprint

console = Console()


def keygen_cmd(
    operator: str = typer.Option("operator", "--operator", "-o", help="Operator label."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Print only 'private public' hex, for scripting."
    ),
) -> None:
    """Generate an Ed25519 key pair for an operator."""
    private_key, public_key = generate_keypair()
    if quiet:
        typer.echo(f"{private_key} {public_key}")
        return
    console.print(
        Panel(
            "\n".join([
                f"[bold]Operator:[/bold]     {operator}",
                f"[bold]Public key:[/bold]   {public_key}",
                f"[bold]Fingerprint:[/bold]  {key_fingerprint(public_key)}",
                f"[bold]Private key:[/bold]  {private_key}",
                "",
                "[dim]Keep the private key secret; register only the public key.[/dim]",
            ]),
            title="[bold]Operator key pair[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
