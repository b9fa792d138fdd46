"""Unit tests for the CLI — Typer command registration and basic behavior.

Exercises app registration, help output, and the demo/journal/verify
round trip via typer.testing.CliRunner.
"""

from __future__ import annotations

import sqlite3

from typer.testing import CliRunner

from quorumstore.cli.app import app
from quorumstore.core.journal import ProtocolJournal

runner = CliRunner()


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("demo", "keygen", "journal", "verify"):
            assert command in result.output

    def test_demo_command_exists(self):
        result = runner.invoke(app, ["demo", "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: keygen
# ---------------------------------------------------------------------------


class TestKeygen:
    def test_quiet_prints_hex_pair(self):
        result = runner.invoke(app, ["keygen", "--quiet"])
        assert result.exit_code == 0
        private_key, public_key = result.output.split()
        assert len(private_key) == 64
        assert len(public_key) == 64
        bytes.fromhex(private_key)

    def test_panel_output(self):
        result = runner.invoke(app, ["keygen", "--operator", "op-z"])
        assert result.exit_code == 0
        assert "op-z" in result.output


# ---------------------------------------------------------------------------
# Test: demo, journal, verify
# ---------------------------------------------------------------------------


class TestDemoAndJournal:
    def test_demo_writes_verifiable_journal(self, tmp_path):
        db = tmp_path / "demo.db"
        result = runner.invoke(app, ["demo", "--journal", str(db)])
        assert result.exit_code == 0, result.output
        assert "challenger_wins" in result.output
        assert "Chain: valid" in result.output

        journal = ProtocolJournal(db)
        (ledger_id,) = journal.get_all_ledger_ids()
        events = [e.event for e in journal.entries(ledger_id)]
        assert events.count("initialized->confirmed") == 2
        assert "finalized" in events
        assert "pending->challenger_wins" in events

        shown = runner.invoke(app, ["journal", "--journal", str(db)])
        assert shown.exit_code == 0
        assert f"Journal {ledger_id}" in shown.output

        verified = runner.invoke(app, ["verify", ledger_id, "--journal", str(db)])
        assert verified.exit_code == 0
        assert "Chain valid" in verified.output

    def test_verify_detects_tampering(self, tmp_path):
        db = tmp_path / "demo.db"
        runner.invoke(app, ["demo", "--journal", str(db)])
        ledger_id = ProtocolJournal(db).get_all_ledger_ids()[0]

        conn = sqlite3.connect(str(db))
        conn.execute(
            "UPDATE protocol_journal SET subject = 'forged' "
            "WHERE id = (SELECT MIN(id) FROM protocol_journal)"
        )
        conn.commit()
        conn.close()

        result = runner.invoke(app, ["verify", ledger_id, "--journal", str(db)])
        assert result.exit_code == 1
        assert "BROKEN" in result.output

    def test_invalid_quorum_exits_nonzero(self, tmp_path):
        result = runner.invoke(
            app, ["demo", "--journal", str(tmp_path / "demo.db"), "--quorum", "10001"]
        )
        assert result.exit_code == 1
        assert "InvalidQuorum" in result.output

    def test_missing_journal(self, tmp_path):
        result = runner.invoke(app, ["verify", "qs-x", "--journal", str(tmp_path / "no.db")])
        assert result.exit_code == 1
        assert "Journal not found" in result.output
