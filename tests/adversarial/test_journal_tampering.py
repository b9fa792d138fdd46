"""Adversarial tests — journal tampering and chain integrity.

These tests verify that the ProtocolJournal detects:
1. Corrupted entry hashes (tampered content)
2. Broken chain links (reordered/deleted entries)
3. Retroactive rewrites of recorded outcomes
4. External anchor divergence
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from quorumstore.core.journal import JournalIntegrityError, ProtocolJournal
from quorumstore.models.journal import JournalEntry


def _nth_id_clause() -> str:
    return (
        "(SELECT id FROM protocol_journal WHERE ledger_id = ? "
        "ORDER BY id ASC LIMIT 1 OFFSET ?)"
    )


def _tamper(db_path: Path, sql: str, params: tuple) -> None:
    conn = sqlite3.connect(str(db_path))
    conn.execute(sql, params)
    conn.commit()
    conn.close()


class TestJournalTamperDetection:
    """Direct SQLite manipulation to simulate an attacker with DB access."""

    @pytest.fixture
    def seeded_journal(self, tmp_path: Path) -> tuple[ProtocolJournal, str]:
        """Seed a journal with 5 entries for a single ledger."""
        journal = ProtocolJournal(tmp_path / "journal.db")
        ledger_id = "qs-adversarial-001"
        for i in range(5):
            journal.append(JournalEntry(
                ledger_id=ledger_id,
                component="disputes",
                event="pending->defender_wins",
                subject=f"[{i + 1}, {i + 1}]",
                block=i,
                details={"resolved_fee": 1000},
            ))
        return journal, ledger_id

    def test_corrupted_entry_hash_detected(self, seeded_journal):
        journal, ledger_id = seeded_journal
        _tamper(
            journal.db_path,
            f"UPDATE protocol_journal SET entry_hash = 'TAMPERED' WHERE id = {_nth_id_clause()}",
            (ledger_id, 2),
        )
        with pytest.raises(JournalIntegrityError, match="(Chain broken|Tampered)"):
            journal.verify_chain(ledger_id)

    def test_rewritten_outcome_detected(self, seeded_journal):
        """Flip a recorded outcome in favour of the challenger."""
        journal, ledger_id = seeded_journal
        _tamper(
            journal.db_path,
            "UPDATE protocol_journal SET event = 'pending->challenger_wins' "
            f"WHERE id = {_nth_id_clause()}",
            (ledger_id, 1),
        )
        with pytest.raises(JournalIntegrityError, match="Tampered"):
            journal.verify_chain(ledger_id)

    def test_rewritten_details_detected(self, seeded_journal):
        journal, ledger_id = seeded_journal
        _tamper(
            journal.db_path,
            "UPDATE protocol_journal SET details_json = '{\"resolved_fee\": 1}' "
            f"WHERE id = {_nth_id_clause()}",
            (ledger_id, 3),
        )
        with pytest.raises(JournalIntegrityError, match="Tampered"):
            journal.verify_chain(ledger_id)

    def test_deleted_entry_breaks_chain(self, seeded_journal):
        journal, ledger_id = seeded_journal
        _tamper(
            journal.db_path,
            f"DELETE FROM protocol_journal WHERE id = {_nth_id_clause()}",
            (ledger_id, 1),
        )
        with pytest.raises(JournalIntegrityError, match="Chain broken"):
            journal.verify_chain(ledger_id)

    def test_broken_chain_link_detected(self, seeded_journal):
        journal, ledger_id = seeded_journal
        _tamper(
            journal.db_path,
            "UPDATE protocol_journal SET previous_entry_hash = 'WRONG_LINK' "
            f"WHERE id = {_nth_id_clause()}",
            (ledger_id, 2),
        )
        with pytest.raises(JournalIntegrityError, match="Chain broken"):
            journal.verify_chain(ledger_id)


class TestExternalAnchoring:
    """External anchors detect chain rewrites."""

    def _seed(self, tmp_path: Path, ledger_id: str, count: int) -> ProtocolJournal:
        journal = ProtocolJournal(tmp_path / "journal.db")
        for i in range(count):
            journal.append(JournalEntry(
                ledger_id=ledger_id, component="escrow",
                event="claim", subject=f"op-{i}",
            ))
        return journal

    def test_anchor_export_round_trip(self, tmp_path: Path):
        journal = self._seed(tmp_path, "qs-anchor-001", 3)
        anchor = journal.export_anchor("qs-anchor-001")
        assert anchor["entry_count"] == 3
        assert anchor["root_hash"] != ""
        assert anchor["anchor_hash"] != ""
        assert journal.verify_against_anchor("qs-anchor-001", anchor) is True

    def test_anchor_survives_later_appends(self, tmp_path: Path):
        journal = self._seed(tmp_path, "qs-anchor-002", 3)
        anchor = journal.export_anchor("qs-anchor-002")
        journal.append(JournalEntry(
            ledger_id="qs-anchor-002", component="escrow", event="claim", subject="op-9",
        ))
        assert journal.verify_against_anchor("qs-anchor-002", anchor) is True

    def test_anchor_detects_rewrite(self, tmp_path: Path):
        journal = self._seed(tmp_path, "qs-anchor-003", 3)
        anchor = journal.export_anchor("qs-anchor-003")
        _tamper(
            journal.db_path,
            f"UPDATE protocol_journal SET subject = 'attacker' WHERE id = {_nth_id_clause()}",
            ("qs-anchor-003", 1),
        )
        with pytest.raises(JournalIntegrityError):
            journal.verify_against_anchor("qs-anchor-003", anchor)

    def test_anchor_detects_truncated_chain(self, tmp_path: Path):
        journal = self._seed(tmp_path, "qs-anchor-004", 5)
        anchor = journal.export_anchor("qs-anchor-004")
        _tamper(
            journal.db_path,
            "DELETE FROM protocol_journal WHERE ledger_id = ? AND id IN "
            "(SELECT id FROM protocol_journal WHERE ledger_id = ? ORDER BY id DESC LIMIT 2)",
            ("qs-anchor-004", "qs-anchor-004"),
        )
        with pytest.raises(JournalIntegrityError, match="entries but anchor expects"):
            journal.verify_against_anchor("qs-anchor-004", anchor)

    def test_empty_chain_anchor(self, tmp_path: Path):
        journal = ProtocolJournal(tmp_path / "journal.db")
        anchor = journal.export_anchor("nonexistent")
        assert anchor["entry_count"] == 0
        assert journal.verify_against_anchor("nonexistent", anchor) is True
