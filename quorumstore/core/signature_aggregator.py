"""Signature aggregator — fail-fast verification and weight summation.

The aggregator is a pure primitive: the caller supplies the digest that
was signed and two lookups (weight and public key).  It never computes
domain hashes itself, so the ledger and any offline auditor can share it.

A single bad entry invalidates the claimed total; no partial weight is
ever returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from quorumstore.bridge.crypto_bridge import verify_data
from quorumstore.core.errors import (
    DuplicateSignerError,
    InvalidSignatureError,
    UnknownSignerError,
)
from quorumstore.models.signatures import SignatureSet

logger = logging.getLogger(__name__)

WeightLookup = Callable[[str], int | None]
KeyLookup = Callable[[str], str | None]


class SignatureAggregator:
    """Verifies a signature set over a digest and sums signer weights."""

    def verify_and_sum(
        self,
        digest: str,
        signature_set: SignatureSet,
        weight_lookup: WeightLookup,
        key_lookup: KeyLookup,
    ) -> int:
        """Return the total weight of the signers in *signature_set*.

        Parameters
        ----------
        digest:
            Hex-encoded digest every signer signed.
        signature_set:
            Strictly increasing ``(signer, signature)`` entries.
        weight_lookup:
            Signer -> weight, or ``None`` if the signer is unregistered.
        key_lookup:
            Signer -> hex public key, or ``None`` if unknown.

        Raises
        ------
        DuplicateSignerError
            If signer identities are not strictly increasing.
        UnknownSignerError
            If a signer has no weight or no registered key.
        InvalidSignatureError
            If any signature fails verification.
        """
        self._check_ordering(signature_set)
        message = bytes.fromhex(digest)

        total = 0
        for position, entry in enumerate(signature_set.entries):
            weight = weight_lookup(entry.signer)
            if weight is None:
                raise UnknownSignerError(
                    f"Signer {entry.signer} (position {position}) is not registered"
                )
            public_key = key_lookup(entry.signer)
            if not public_key:
                raise UnknownSignerError(
                    f"Signer {entry.signer} (position {position}) has no registered key"
                )
            if not verify_data(message, entry.signature, public_key):
                raise InvalidSignatureError(
                    f"Signature from {entry.signer} (position {position}) "
                    f"does not verify against digest {digest[:16]}..."
                )
            total += weight

        logger.debug(
            "Verified %d signatures over %s, total weight %d.",
            len(signature_set), digest[:16], total,
        )
        return total

    @staticmethod
    def _check_ordering(signature_set: SignatureSet) -> None:
        signers = signature_set.signers
        for position in range(1, len(signers)):
            if signers[position] <= signers[position - 1]:
                raise DuplicateSignerError(
                    f"Signer {signers[position]!r} at position {position} is not "
                    f"strictly greater than {signers[position - 1]!r}"
                )
