"""Tests for the frozen protocol models and canonical hashing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from quorumstore.core.hasher import (
    compute_challenge_digest,
    compute_signatory_digest,
    compute_signature_set_hash,
)
from quorumstore.models.disputes import (
    DefenderConcessionEvidence,
    DumpNumberRange,
    EvidenceKind,
    FeeRecomputationEvidence,
    parse_evidence,
)
from quorumstore.models.payments import EscrowedPayment
from quorumstore.models.records import DataStoreRecord, RecordStatus
from quorumstore.models.signatures import SignatureSet
from quorumstore.models.stakes import OperatorStakeSnapshot


class TestDumpNumberRange:
    def test_inclusive_bounds(self):
        r = DumpNumberRange(start=3, end=5)
        assert list(r.dump_numbers()) == [3, 4, 5]
        assert str(r) == "[3, 5]"

    @pytest.mark.parametrize("start,end", [(0, 1), (5, 4)])
    def test_invalid_ranges_rejected(self, start, end):
        with pytest.raises(ValidationError):
            DumpNumberRange(start=start, end=end)

    def test_overlap(self):
        a = DumpNumberRange(start=1, end=3)
        assert a.overlaps(DumpNumberRange(start=3, end=4))
        assert not a.overlaps(DumpNumberRange(start=4, end=6))

    def test_hashable_and_comparable(self):
        assert {DumpNumberRange(start=1, end=2): "x"}[DumpNumberRange(start=1, end=2)] == "x"

    def test_frozen(self):
        r = DumpNumberRange(start=1, end=2)
        with pytest.raises(ValidationError):
            r.start = 5


class TestEvidence:
    def test_parse_fee_recomputation(self):
        evidence = parse_evidence({"kind": "fee_recomputation", "fees": {"1": 10, "2": 20}})
        assert isinstance(evidence, FeeRecomputationEvidence)
        assert evidence.fees == {1: 10, 2: 20}
        assert evidence.total == 30

    def test_parse_defender_concession(self):
        evidence = parse_evidence({"kind": "defender_concession", "signature": "ab" * 64})
        assert isinstance(evidence, DefenderConcessionEvidence)
        assert evidence.kind == EvidenceKind.DEFENDER_CONCESSION

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_evidence({"kind": "hearsay", "claim": "trust me"})

    def test_missing_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_evidence({"fees": {1: 10}})


class TestDataStoreRecord:
    def _record(self, **kw) -> DataStoreRecord:
        fields = dict(
            dump_number=1, content_digest="ab" * 32, total_bytes=10,
            store_period_length=50, submitter="client", quorum_threshold_bps=6600,
            init_block=5, signatory_digest="cd" * 32,
        )
        fields.update(kw)
        return DataStoreRecord(**fields)

    def test_expiry_block(self):
        assert self._record().expiry_block == 55

    def test_defaults_to_initialized(self):
        record = self._record()
        assert record.status == RecordStatus.INITIALIZED
        assert not record.is_confirmed

    def test_short_digest_rejected(self):
        with pytest.raises(ValidationError):
            self._record(content_digest="abcd")


class TestSmallModels:
    def test_snapshot_covers_half_open_window(self):
        snap = OperatorStakeSnapshot(operator="op-a", weight=5, start_index=3, end_index=6)
        assert not snap.covers(2)
        assert snap.covers(3)
        assert snap.covers(5)
        assert not snap.covers(6)

    def test_open_snapshot_covers_everything_after_start(self):
        snap = OperatorStakeSnapshot(operator="op-a", weight=5, start_index=3)
        assert snap.covers(10**6)

    def test_payment_claimability(self):
        payment = EscrowedPayment(recipient="op-a", index=0, amount=5, created_block=10)
        assert not payment.is_claimable(109, 100)
        assert payment.is_claimable(110, 100)
        claimed = payment.model_copy(update={"claimed": True})
        assert not claimed.is_claimable(500, 100)


class TestHashing:
    def test_signatory_digest_binds_every_field(self):
        base = compute_signatory_digest(1, "ab" * 32, 100)
        assert base == compute_signatory_digest(1, "ab" * 32, 100)
        assert base != compute_signatory_digest(2, "ab" * 32, 100)
        assert base != compute_signatory_digest(1, "cd" * 32, 100)
        assert base != compute_signatory_digest(1, "ab" * 32, 101)

    def test_signature_set_hash_depends_on_order(self):
        forward = SignatureSet.from_pairs([("op-a", "11"), ("op-b", "22")])
        backward = SignatureSet.from_pairs([("op-b", "22"), ("op-a", "11")])
        assert compute_signature_set_hash(forward) != compute_signature_set_hash(backward)

    def test_challenge_digest_binds_claim(self):
        assert compute_challenge_digest(1, 2, 100) != compute_challenge_digest(1, 2, 101)
