"""``quorumstore demo`` — run the confirmation and dispute protocol end to end.

Registers three operators with 40/30/30 stake, confirms a data store once
quorum is reached, then settles two payments: one trusted after its
fraud-proof window, one overclaimed and lost to a challenger.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from quorumstore.bridge.crypto_bridge import generate_keypair, key_fingerprint, sign_data
from quorumstore.config import ProtocolConfig
from quorumstore.core.coordinator import Coordinator
from quorumstore.core.errors import ProtocolError, QuorumNotMetError
from quorumstore.core.journal import ProtocolJournal
from quorumstore.models.disputes import DumpNumberRange, FeeRecomputationEvidence
from quorumstore.models.signatures import SignatureSet

console = Console()

_OPERATORS: list[tuple[str, int]] = [("op-a", 40), ("op-b", 30), ("op-c", 30)]


def _sign_all(coordinator: Coordinator, dump_number: int, keys: dict[str, str],
              signers: list[str]) -> SignatureSet:
    message = bytes.fromhex(coordinator.signatory_digest(dump_number))
    return SignatureSet.from_pairs(
        [(op, sign_data(message, keys[op])) for op in sorted(signers)]
    )


def demo_cmd(
    journal_db: str = typer.Option(
        ".quorumstore/demo-journal.db",
        "--journal",
        "-j",
        help="Path to the journal SQLite database (uses demo-specific default).",
    ),
    quorum_bps: int = typer.Option(
        6600, "--quorum", "-q", help="Quorum threshold in basis points."
    ),
) -> None:
    """Run a complete demo with three operators and two payment disputes."""
    config = ProtocolConfig(
        journal_path=Path(journal_db),
        fraud_proof_interval=10,
        min_collateral=100,
        withdrawal_delay=5,
    )
    coordinator = Coordinator(config=config, journal=ProtocolJournal(config.journal_path))

    console.print()
    console.print(
        Panel(
            "[bold]QuorumStore Demo[/bold]\n\n"
            f"Ledger: {coordinator.ledger_id}\n"
            f"Quorum: {quorum_bps} bps of stake",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    try:
        # Operators
        keys: dict[str, str] = {}
        table = Table(title="Operators")
        table.add_column("Operator", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Key fingerprint", style="dim")
        for operator, weight in _OPERATORS:
            private_key, public_key = generate_keypair()
            keys[operator] = private_key
            coordinator.register_operator(operator, public_key, block=0)
            coordinator.update_stake(operator, weight, as_of_index=1, block=0)
            table.add_row(operator, str(weight), key_fingerprint(public_key))
        console.print(table)

        # Two data stores
        blobs = [b"demo blob one", b"demo blob two"]
        for blob in blobs:
            digest = hashlib.sha256(blob).hexdigest()
            record = coordinator.init_data_store(
                digest, len(blob), store_period_length=50, submitter="demo-client",
                quorum_threshold_bps=quorum_bps, block=1,
            )
            partial = _sign_all(coordinator, record.dump_number, keys, ["op-b", "op-c"])
            try:
                coordinator.confirm(record.dump_number, digest, partial, block=2)
            except QuorumNotMetError as exc:
                console.print(f"[yellow]Data store {record.dump_number}:[/yellow] {exc}")
            full = _sign_all(coordinator, record.dump_number, keys, list(keys))
            confirmed = coordinator.confirm(record.dump_number, digest, full, block=3)
            console.print(
                f"[green]Data store {confirmed.dump_number} confirmed[/green] "
                f"({confirmed.signed_weight}/{confirmed.total_weight})"
            )

        # Honest payment: trusted after the window
        honest = DumpNumberRange(start=1, end=1)
        coordinator.commit_payment("op-a", honest, coordinator.disputes.fee_for(honest), block=4)
        coordinator.finalize_unchallenged(honest, block=4 + config.fraud_proof_interval)
        console.print(f"[green]Payment for {honest} trusted unchallenged.[/green]")

        # Overclaimed payment: challenged and lost
        greedy = DumpNumberRange(start=2, end=2)
        owed = coordinator.disputes.fee_for(greedy)
        coordinator.commit_payment("op-b", greedy, owed * 2, block=5)
        coordinator.open_challenge(greedy, 100, "watcher", block=6)
        evidence = FeeRecomputationEvidence(fees={2: owed})
        resolved = coordinator.resolve_challenge(greedy, evidence, block=7)
        console.print(
            f"[bold red]Challenge over {greedy}: {resolved.outcome.value}[/bold red] "
            f"(claimed {resolved.claimed_fee}, owed {resolved.resolved_fee})"
        )

        # Claims after the withdrawal delay
        claim_block = 20
        for recipient in ("op-a", "watcher"):
            result = coordinator.claim(recipient, 10, block=claim_block)
            console.print(
                f"{recipient} claimed {result.count} payment(s) worth {result.amount}"
            )
    except ProtocolError as exc:
        console.print(f"[bold red]{exc.code}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    valid = coordinator.verify_journal()
    console.print()
    console.print(f"[bold]Journal:[/bold] {config.journal_path}")
    console.print(f"[bold]Chain:[/bold] {'valid' if valid else 'BROKEN'}")
    console.print(f"[bold]Ledger:[/bold] {coordinator.ledger_id}")
