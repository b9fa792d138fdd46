"""Protocol error kinds.

Every failure raised by the core carries a stable ``code`` naming its kind,
so callers and the CLI can branch on the kind without string matching.
Timing failures derive from ``TryAgainLaterError``: the caller did nothing
wrong and should re-invoke once the relevant block has passed.
"""

from __future__ import annotations

from typing import ClassVar


class ProtocolError(RuntimeError):
    """Base class for all protocol failures."""

    code: ClassVar[str] = "ProtocolError"


class TryAgainLaterError(ProtocolError):
    """A deadline has not been reached yet."""

    code: ClassVar[str] = "TryAgainLater"


# ---------------------------------------------------------------------------
# Stake registry
# ---------------------------------------------------------------------------


class StaleUpdateError(ProtocolError):
    """Raised when a stake update does not move an operator's index forward."""

    code: ClassVar[str] = "StaleUpdate"


# ---------------------------------------------------------------------------
# Signature aggregation
# ---------------------------------------------------------------------------


class InvalidSignatureError(ProtocolError):
    code: ClassVar[str] = "InvalidSignature"


class DuplicateSignerError(ProtocolError):
    code: ClassVar[str] = "DuplicateSigner"


class UnknownSignerError(ProtocolError):
    code: ClassVar[str] = "UnknownSigner"


# ---------------------------------------------------------------------------
# Data store ledger
# ---------------------------------------------------------------------------


class InvalidSizeError(ProtocolError):
    code: ClassVar[str] = "InvalidSize"


class InvalidQuorumError(ProtocolError):
    code: ClassVar[str] = "InvalidQuorum"


class UnknownRecordError(ProtocolError):
    code: ClassVar[str] = "UnknownRecord"


class DigestMismatchError(ProtocolError):
    code: ClassVar[str] = "DigestMismatch"


class QuorumNotMetError(ProtocolError):
    code: ClassVar[str] = "QuorumNotMet"


class AlreadyConfirmedError(ProtocolError):
    code: ClassVar[str] = "AlreadyConfirmed"


class NotYetExpiredError(TryAgainLaterError):
    code: ClassVar[str] = "NotYetExpired"


# ---------------------------------------------------------------------------
# Payment disputes
# ---------------------------------------------------------------------------


class RecordNotConfirmedError(ProtocolError):
    code: ClassVar[str] = "RecordNotConfirmed"


class InsufficientCollateralError(ProtocolError):
    code: ClassVar[str] = "InsufficientCollateral"


class ChallengeAlreadyOpenError(ProtocolError):
    code: ClassVar[str] = "ChallengeAlreadyOpen"


class NoPaymentCommitmentError(ProtocolError):
    code: ClassVar[str] = "NoPaymentCommitment"


class PaymentAlreadySettledError(ProtocolError):
    code: ClassVar[str] = "PaymentAlreadySettled"


class UnknownChallengeError(ProtocolError):
    code: ClassVar[str] = "UnknownChallenge"


class InvalidEvidenceError(ProtocolError):
    """Raised when submitted evidence fails its kind's validation."""

    code: ClassVar[str] = "InvalidEvidence"


class ChallengeStillOpenError(TryAgainLaterError):
    code: ClassVar[str] = "ChallengeStillOpen"


# ---------------------------------------------------------------------------
# Escrow and slashing
# ---------------------------------------------------------------------------


class DelayTooLargeError(ProtocolError):
    code: ClassVar[str] = "DelayTooLarge"


class OperatorFrozenError(ProtocolError):
    code: ClassVar[str] = "OperatorFrozen"


class OperatorBondedError(ProtocolError):
    code: ClassVar[str] = "OperatorBonded"
