"""Signature set models — ephemeral input to confirmation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SignatureEntry(BaseModel):
    """One operator's Ed25519 signature over a signatory digest."""

    model_config = ConfigDict(frozen=True)

    signer: str  # operator identity
    signature: str  # hex-encoded Ed25519 signature (128 hex chars)


class SignatureSet(BaseModel):
    """Ordered (signer, signature) pairs over one fixed digest.

    Signers must be strictly increasing; the aggregator rejects any other
    order so that no operator's weight can be counted twice.
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[SignatureEntry, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: list[tuple[str, str]]) -> SignatureSet:
        """Build a set from ``(signer, signature)`` tuples, keeping their order."""
        return cls(
            entries=tuple(SignatureEntry(signer=s, signature=sig) for s, sig in pairs)
        )

    @property
    def signers(self) -> list[str]:
        return [e.signer for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
