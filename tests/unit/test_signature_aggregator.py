"""Tests for the SignatureAggregator — fail-fast verification and summation."""

from __future__ import annotations

import hashlib

import pytest

from quorumstore.core.errors import (
    DuplicateSignerError,
    InvalidSignatureError,
    UnknownSignerError,
)
from quorumstore.core.signature_aggregator import SignatureAggregator
from quorumstore.core.stake_registry import StakeRegistry
from quorumstore.models.signatures import SignatureEntry, SignatureSet

DIGEST = hashlib.sha256(b"aggregator-digest").hexdigest()


def _lookups(registry: StakeRegistry, index: int = 1):
    return (lambda op: registry.weight_at(op, index)), registry.public_key_of


class TestVerifyAndSum:
    def test_sums_weights_of_valid_signers(self, registry, sign_set):
        weight_lookup, key_lookup = _lookups(registry)
        total = SignatureAggregator().verify_and_sum(
            DIGEST, sign_set(DIGEST, ["op-a", "op-b", "op-c"]), weight_lookup, key_lookup
        )
        assert total == 100

    def test_empty_set_sums_to_zero(self, registry):
        weight_lookup, key_lookup = _lookups(registry)
        assert SignatureAggregator().verify_and_sum(
            DIGEST, SignatureSet(), weight_lookup, key_lookup
        ) == 0

    def test_invalid_signature_rejected_regardless_of_weight(self, registry, sign_set):
        good = sign_set(DIGEST, ["op-a", "op-b", "op-c"])
        forged = sign_set(hashlib.sha256(b"other").hexdigest(), ["op-c"]).entries[0]
        tampered = SignatureSet(entries=(*good.entries[:2], forged))
        weight_lookup, key_lookup = _lookups(registry)
        with pytest.raises(InvalidSignatureError):
            SignatureAggregator().verify_and_sum(DIGEST, tampered, weight_lookup, key_lookup)

    def test_malformed_signature_is_invalid(self, registry):
        bad = SignatureSet(entries=(SignatureEntry(signer="op-a", signature="zz"),))
        weight_lookup, key_lookup = _lookups(registry)
        with pytest.raises(InvalidSignatureError):
            SignatureAggregator().verify_and_sum(DIGEST, bad, weight_lookup, key_lookup)

    def test_repeated_signer_rejected(self, registry, sign_set):
        one = sign_set(DIGEST, ["op-a"]).entries[0]
        doubled = SignatureSet(entries=(one, one))
        weight_lookup, key_lookup = _lookups(registry)
        with pytest.raises(DuplicateSignerError):
            SignatureAggregator().verify_and_sum(DIGEST, doubled, weight_lookup, key_lookup)

    def test_decreasing_order_rejected_even_when_all_valid(self, registry, sign_set):
        ordered = sign_set(DIGEST, ["op-a", "op-b", "op-c"])
        reversed_set = SignatureSet(entries=tuple(reversed(ordered.entries)))
        weight_lookup, key_lookup = _lookups(registry)
        with pytest.raises(DuplicateSignerError):
            SignatureAggregator().verify_and_sum(
                DIGEST, reversed_set, weight_lookup, key_lookup
            )

    def test_ordering_checked_before_crypto(self, registry, sign_set):
        """An out-of-order set fails as DuplicateSigner even if it also has a bad signature."""
        entries = sign_set(DIGEST, ["op-a", "op-b"]).entries
        bad_first = SignatureEntry(signer="op-b", signature="00" * 64)
        weight_lookup, key_lookup = _lookups(registry)
        with pytest.raises(DuplicateSignerError):
            SignatureAggregator().verify_and_sum(
                DIGEST, SignatureSet(entries=(bad_first, entries[0])), weight_lookup, key_lookup
            )

    def test_unregistered_signer_rejected(self, registry, sign_set):
        weight_lookup, key_lookup = _lookups(registry, index=0)  # nobody registered yet
        with pytest.raises(UnknownSignerError):
            SignatureAggregator().verify_and_sum(
                DIGEST, sign_set(DIGEST, ["op-a"]), weight_lookup, key_lookup
            )

    def test_signer_without_key_rejected(self, registry, sign_set):
        weight_lookup, _ = _lookups(registry)
        with pytest.raises(UnknownSignerError):
            SignatureAggregator().verify_and_sum(
                DIGEST, sign_set(DIGEST, ["op-a"]), weight_lookup, lambda _op: None
            )

    def test_signature_under_wrong_key_rejected(self, registry, sign_set):
        weight_lookup, _ = _lookups(registry)
        # op-a's signature checked against op-b's key
        with pytest.raises(InvalidSignatureError):
            SignatureAggregator().verify_and_sum(
                DIGEST,
                sign_set(DIGEST, ["op-a"]),
                weight_lookup,
                lambda _op: registry.public_key_of("op-b"),
            )
