"""Append-only, hash-chained protocol journal backed by SQLite.

Every successful coordinator operation (stake update, data store
transition, challenge, payout) becomes one row.  Rows of a ledger form a
SHA-256 chain: each seals the hash of the row before it, so an edit or a
deletion anywhere in the ledger breaks verification from that point on.
Only ``append`` writes.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from quorumstore.core.hasher import canonical_json_bytes, compute_entry_hash, sha256_hex
from quorumstore.models.journal import JournalEntry

_COLUMNS = (
    "entry_id", "ledger_id", "component", "event", "subject", "block",
    "timestamp_utc", "details_json", "schema_version",
    "previous_entry_hash", "entry_hash",
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS protocol_journal (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id            TEXT NOT NULL UNIQUE,
    ledger_id           TEXT NOT NULL,
    component           TEXT NOT NULL,
    event               TEXT NOT NULL,
    subject             TEXT NOT NULL,
    block               INTEGER NOT NULL DEFAULT 0,
    timestamp_utc       TEXT NOT NULL,
    details_json        TEXT NOT NULL DEFAULT '{}',
    schema_version      TEXT NOT NULL,
    previous_entry_hash TEXT NOT NULL DEFAULT '',
    entry_hash          TEXT NOT NULL UNIQUE
);
CREATE INDEX IF NOT EXISTS idx_ledger_id ON protocol_journal(ledger_id, id);
CREATE INDEX IF NOT EXISTS idx_ledger_subject ON protocol_journal(ledger_id, subject, id);
"""

_INSERT = (
    f"INSERT INTO protocol_journal ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)


class JournalIntegrityError(RuntimeError):
    """Raised when the hash chain is broken."""


def _to_row(entry: JournalEntry) -> tuple[Any, ...]:
    values = entry.model_dump(mode="json")
    values["timestamp_utc"] = entry.timestamp_utc.isoformat()
    values["details_json"] = json.dumps(entry.details, sort_keys=True)
    return tuple(values[column] for column in _COLUMNS)


def _from_row(row: sqlite3.Row) -> JournalEntry:
    fields = {column: row[column] for column in _COLUMNS}
    fields["details"] = json.loads(fields.pop("details_json"))
    return JournalEntry(**fields)


class ProtocolJournal:
    """Append-only, hash-chained protocol journal.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _select(self, where: str, params: tuple[Any, ...], *, newest_first: bool = False,
                limit: int | None = None) -> list[JournalEntry]:
        sql = f"SELECT * FROM protocol_journal WHERE {where} ORDER BY id "
        sql += "DESC" if newest_first else "ASC"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, entry: JournalEntry) -> JournalEntry:
        """Seal *entry* onto the end of its ledger's chain and store it.

        Reading the chain head and inserting happen in one write
        transaction, so concurrent writers cannot fork a ledger.
        """
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            head = conn.execute(
                "SELECT entry_hash FROM protocol_journal WHERE ledger_id = ? "
                "ORDER BY id DESC LIMIT 1",
                (entry.ledger_id,),
            ).fetchone()
            linked = entry.model_copy(
                update={"previous_entry_hash": head[0] if head else "", "entry_hash": ""}
            )
            sealed = linked.model_copy(
                update={"entry_hash": compute_entry_hash(linked.model_dump(mode="json"))}
            )
            conn.execute(_INSERT, _to_row(sealed))
        return sealed

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_latest(self, ledger_id: str) -> JournalEntry | None:
        latest = self._select("ledger_id = ?", (ledger_id,), newest_first=True, limit=1)
        return latest[0] if latest else None

    def entries(self, ledger_id: str) -> list[JournalEntry]:
        """All entries of a ledger, oldest first."""
        return self._select("ledger_id = ?", (ledger_id,))

    def subject_history(self, ledger_id: str, subject: str) -> list[JournalEntry]:
        """Entries about one subject (a dump number, operator or range), oldest first."""
        return self._select("ledger_id = ? AND subject = ?", (ledger_id, subject))

    def get_all_ledger_ids(self) -> list[str]:
        """Ledger ids present in the journal, most recently written first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT ledger_id FROM protocol_journal GROUP BY ledger_id "
                "ORDER BY MAX(id) DESC"
            ).fetchall()
        return [row["ledger_id"] for row in rows]

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify_chain(self, ledger_id: str) -> bool:
        """Return True if the ledger's chain is intact.

        Raises
        ------
        JournalIntegrityError
            At the first entry whose link or seal does not check out.
        """
        expected_link = ""
        for entry in self.entries(ledger_id):
            if entry.previous_entry_hash != expected_link:
                raise JournalIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: expected previous "
                    f"hash {expected_link!r}, got {entry.previous_entry_hash!r}"
                )
            resealed = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != resealed:
                raise JournalIntegrityError(
                    f"Tampered entry {entry.entry_id}: stored hash "
                    f"{entry.entry_hash!r} does not match contents ({resealed!r})"
                )
            expected_link = entry.entry_hash
        return True

    def export_anchor(self, ledger_id: str) -> dict[str, Any]:
        """Snapshot the ledger's chain for an external witness to keep."""
        entries = self.entries(ledger_id)
        anchor: dict[str, Any] = {
            "ledger_id": ledger_id,
            "entry_count": len(entries),
            "root_hash": entries[-1].entry_hash if entries else "",
            "first_entry_hash": entries[0].entry_hash if entries else "",
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
        anchor["anchor_hash"] = sha256_hex(canonical_json_bytes(anchor)) if entries else ""
        return anchor

    def verify_against_anchor(self, ledger_id: str, anchor: dict[str, Any]) -> bool:
        """Check that the anchored prefix of the chain is unchanged.

        Entries appended after the anchor was taken are allowed.
        """
        entries = self.entries(ledger_id)
        count = anchor.get("entry_count", 0)
        if len(entries) < count:
            raise JournalIntegrityError(
                f"Journal for {ledger_id} has {len(entries)} entries but "
                f"anchor expects at least {count}."
            )
        if count == 0:
            return True
        if entries[0].entry_hash != anchor.get("first_entry_hash", ""):
            raise JournalIntegrityError(
                f"First entry hash mismatch for {ledger_id}: chain rewritten from the start."
            )
        if entries[count - 1].entry_hash != anchor.get("root_hash", ""):
            raise JournalIntegrityError(
                f"Root hash mismatch at entry {count} for {ledger_id}: "
                f"anchored entries were modified."
            )
        return self.verify_chain(ledger_id)
