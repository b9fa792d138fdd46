"""QuorumStore data models — all Pydantic v2, all frozen (immutable)."""

from quorumstore.models.disputes import (
    ChallengeOutcome,
    DefenderConcessionEvidence,
    DumpNumberRange,
    Evidence,
    EvidenceKind,
    FeeRecomputationEvidence,
    PaymentChallenge,
    PaymentCommitment,
    parse_evidence,
)
from quorumstore.models.journal import JournalEntry
from quorumstore.models.payments import ClaimResult, EscrowedPayment
from quorumstore.models.records import (
    QUORUM_DENOMINATOR,
    VALID_TRANSITIONS,
    DataStoreRecord,
    RecordStatus,
)
from quorumstore.models.signatures import SignatureEntry, SignatureSet
from quorumstore.models.stakes import OperatorStakeSnapshot

__all__ = [
    # records
    "QUORUM_DENOMINATOR",
    "VALID_TRANSITIONS",
    "DataStoreRecord",
    "RecordStatus",
    # stakes
    "OperatorStakeSnapshot",
    # signatures
    "SignatureEntry",
    "SignatureSet",
    # disputes
    "ChallengeOutcome",
    "DumpNumberRange",
    "PaymentChallenge",
    "PaymentCommitment",
    "Evidence",
    "EvidenceKind",
    "FeeRecomputationEvidence",
    "DefenderConcessionEvidence",
    "parse_evidence",
    # payments
    "EscrowedPayment",
    "ClaimResult",
    # journal
    "JournalEntry",
]
