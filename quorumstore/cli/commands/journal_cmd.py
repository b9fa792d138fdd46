"""``quorumstore journal`` and ``quorumstore verify`` — inspect a journal.

``journal LEDGER_ID`` prints every entry of a ledger as a Rich table.
``verify LEDGER_ID`` walks the hash chain and exits non-zero if broken.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from quorumstore.core.journal import JournalIntegrityError, ProtocolJournal

console = Console()

_COMPONENT_STYLES: dict[str, str] = {
    "stakes": "cyan",
    "datastore": "green",
    "disputes": "magenta",
    "escrow": "yellow",
}


def _open_journal(journal_db: str) -> ProtocolJournal:
    db_path = Path(journal_db)
    if not db_path.exists():
        console.print(f"[bold red]Journal not found:[/bold red] {journal_db}")
        raise typer.Exit(code=1)
    return ProtocolJournal(db_path)


def journal_cmd(
    ledger_id: str = typer.Argument(None, help="Ledger ID (latest if omitted)."),
    journal_db: str = typer.Option(
        ".quorumstore/journal.db", "--journal", "-j", help="Path to the journal database."
    ),
) -> None:
    """Show the journal entries of a ledger."""
    journal = _open_journal(journal_db)
    if ledger_id is None:
        ledger_ids = journal.get_all_ledger_ids()
        if not ledger_ids:
            console.print("[dim]Journal is empty.[/dim]")
            return
        ledger_id = ledger_ids[0]

    entries = journal.entries(ledger_id)
    table = Table(title=f"Journal {ledger_id}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Block", justify="right")
    table.add_column("Component")
    table.add_column("Event")
    table.add_column("Subject")
    table.add_column("Hash", style="dim")
    for position, entry in enumerate(entries, start=1):
        style = _COMPONENT_STYLES.get(entry.component, "white")
        table.add_row(
            str(position),
            str(entry.block),
            f"[{style}]{entry.component}[/{style}]",
            entry.event,
            entry.subject,
            entry.entry_hash[:12],
        )
    console.print(table)


def verify_cmd(
    ledger_id: str = typer.Argument(..., help="Ledger ID to verify."),
    journal_db: str = typer.Option(
        ".quorumstore/journal.db", "--journal", "-j", help="Path to the journal database."
    ),
) -> None:
    """Verify the hash chain of a ledger's journal."""
    journal = _open_journal(journal_db)
    try:
        journal.verify_chain(ledger_id)
    except JournalIntegrityError as exc:
        console.print(f"[bold red]Chain BROKEN:[/bold red] {exc}")
        raise typer.Exit(code=1)
    count = len(journal.entries(ledger_id))
    console.print(f"[bold green]Chain valid[/bold green] for {ledger_id} ({count} entries)")
