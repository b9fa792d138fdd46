"""Shared test fixtures for QuorumStore."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from pathlib import Path

import pytest

from quorumstore.bridge.crypto_bridge import generate_keypair, sign_data
from quorumstore.config import ProtocolConfig
from quorumstore.core.coordinator import Coordinator
from quorumstore.core.datastore_ledger import DataStoreLedger
from quorumstore.core.journal import ProtocolJournal
from quorumstore.core.stake_registry import StakeRegistry
from quorumstore.models.signatures import SignatureSet

# The 40/30/30 operator set used throughout the suite.
OPERATOR_WEIGHTS: dict[str, int] = {"op-a": 40, "op-b": 30, "op-c": 30}


@pytest.fixture
def operator_keys() -> dict[str, tuple[str, str]]:
    """Fresh (private, public) Ed25519 key pairs per operator."""
    return {op: generate_keypair() for op in OPERATOR_WEIGHTS}


@pytest.fixture
def registry(operator_keys: dict[str, tuple[str, str]]) -> StakeRegistry:
    """A StakeRegistry with the 40/30/30 operators registered from index 1."""
    reg = StakeRegistry()
    for op, weight in OPERATOR_WEIGHTS.items():
        reg.register_operator(op, operator_keys[op][1])
        reg.record_stake_update(op, weight, as_of_index=1)
    return reg


@pytest.fixture
def datastore(registry: StakeRegistry) -> DataStoreLedger:
    return DataStoreLedger(registry)


@pytest.fixture
def content_digest() -> str:
    return hashlib.sha256(b"quorumstore-test-blob").hexdigest()


@pytest.fixture
def sign_set(
    operator_keys: dict[str, tuple[str, str]],
) -> Callable[[str, list[str]], SignatureSet]:
    """Factory fixture: sign a hex digest with the given operators, sorted."""

    def _factory(digest: str, signers: list[str]) -> SignatureSet:
        message = bytes.fromhex(digest)
        return SignatureSet.from_pairs(
            [(op, sign_data(message, operator_keys[op][0])) for op in sorted(signers)]
        )

    return _factory


@pytest.fixture
def protocol_config(tmp_path: Path) -> ProtocolConfig:
    """Small, deterministic protocol parameters."""
    return ProtocolConfig(
        journal_path=tmp_path / "journal.db",
        fraud_proof_interval=10,
        min_collateral=100,
        withdrawal_delay=5,
        max_withdrawal_delay=1000,
        fee_per_byte_block=1,
        default_quorum_bps=6600,
    )


@pytest.fixture
def journal(tmp_path: Path) -> ProtocolJournal:
    """Provide a fresh ProtocolJournal backed by a temp SQLite database."""
    return ProtocolJournal(tmp_path / "test_journal.db")


@pytest.fixture
def coordinator(
    protocol_config: ProtocolConfig,
    journal: ProtocolJournal,
    operator_keys: dict[str, tuple[str, str]],
) -> Coordinator:
    """A journaled Coordinator with the 40/30/30 operators registered."""
    coord = Coordinator(config=protocol_config, ledger_id="qs-test-001", journal=journal)
    for op, weight in OPERATOR_WEIGHTS.items():
        coord.register_operator(op, operator_keys[op][1])
        coord.update_stake(op, weight, as_of_index=1)
    return coord
