"""Payment dispute manager — fee obligations and fraud-proof challenges.

Lifecycle of a payment for a range of confirmed records::

    record_obligation (one per confirmed record)
        -> commit_payment (defender claims a fee for a range)
            -> finalize_unchallenged   (window passed, claim trusted)
            -> open_challenge -> resolve (evidence, or deadline default)

The fraud-proof interval is fixed at construction and identical for every
commitment and challenge, so the worst-case dispute latency is known.
Absence of a challenge is trust: an unresolved challenge defaults to the
defender once its deadline passes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from quorumstore.bridge.crypto_bridge import verify_data
from quorumstore.core.errors import (
    ChallengeAlreadyOpenError,
    ChallengeStillOpenError,
    InsufficientCollateralError,
    InvalidEvidenceError,
    NoPaymentCommitmentError,
    PaymentAlreadySettledError,
    RecordNotConfirmedError,
    UnknownChallengeError,
)
from quorumstore.core.hasher import compute_challenge_digest
from quorumstore.models.disputes import (
    ChallengeOutcome,
    DefenderConcessionEvidence,
    DumpNumberRange,
    EvidenceKind,
    FeeRecomputationEvidence,
    PaymentChallenge,
    PaymentCommitment,
)

logger = logging.getLogger(__name__)

KeyLookup = Callable[[str], str | None]


def compute_fee(total_bytes: int, store_period_length: int, fee_per_byte_block: int) -> int:
    """Fee owed by one confirmed record: bytes x blocks stored x unit price."""
    return total_bytes * store_period_length * fee_per_byte_block


# ---------------------------------------------------------------------------
# Evidence validators — one deterministic function per evidence kind.
# Each returns (outcome, resolved_fee) or raises InvalidEvidenceError.
# ---------------------------------------------------------------------------


def _validate_fee_recomputation(
    evidence: FeeRecomputationEvidence,
    challenge: PaymentChallenge,
    obligations: dict[int, int],
    key_lookup: KeyLookup,
) -> tuple[ChallengeOutcome, int]:
    dump_range = challenge.dump_range
    size = dump_range.end - dump_range.start + 1
    covers_exactly = len(evidence.fees) == size and all(
        dump_range.start <= n <= dump_range.end for n in evidence.fees
    )
    if not covers_exactly:
        raise InvalidEvidenceError(
            f"Fee recomputation must cover exactly {challenge.dump_range}"
        )
    for dump_number, fee in sorted(evidence.fees.items()):
        if obligations.get(dump_number) != fee:
            raise InvalidEvidenceError(
                f"Recomputed fee {fee} for data store {dump_number} does not match "
                f"the recorded obligation"
            )
    recomputed = evidence.total
    if recomputed != challenge.claimed_fee:
        return ChallengeOutcome.CHALLENGER_WINS, recomputed
    return ChallengeOutcome.DEFENDER_WINS, challenge.claimed_fee


def _validate_defender_concession(
    evidence: DefenderConcessionEvidence,
    challenge: PaymentChallenge,
    obligations: dict[int, int],
    key_lookup: KeyLookup,
) -> tuple[ChallengeOutcome, int]:
    public_key = key_lookup(challenge.defender)
    if not public_key:
        raise InvalidEvidenceError(
            f"Defender {challenge.defender} has no registered key"
        )
    digest = compute_challenge_digest(
        challenge.dump_range.start, challenge.dump_range.end, challenge.claimed_fee
    )
    if not verify_data(bytes.fromhex(digest), evidence.signature, public_key):
        raise InvalidEvidenceError(
            f"Concession for {challenge.dump_range} is not signed by {challenge.defender}"
        )
    owed = sum(obligations[n] for n in challenge.dump_range.dump_numbers())
    return ChallengeOutcome.CHALLENGER_WINS, owed


EVIDENCE_VALIDATORS: dict[EvidenceKind, Callable[..., tuple[ChallengeOutcome, int]]] = {
    EvidenceKind.FEE_RECOMPUTATION: _validate_fee_recomputation,
    EvidenceKind.DEFENDER_CONCESSION: _validate_defender_concession,
}


class PaymentDisputeManager:
    """Tracks fees owed per confirmed record and resolves challenges to claims.

    Parameters
    ----------
    fraud_proof_interval:
        Blocks a commitment may be challenged, and blocks a challenge
        stays open before defaulting to the defender.
    min_collateral:
        Minimum collateral a challenger must post.
    key_lookup:
        Defender -> hex public key, used to verify concessions.
    """

    def __init__(
        self,
        fraud_proof_interval: int,
        min_collateral: int,
        key_lookup: KeyLookup | None = None,
    ) -> None:
        if fraud_proof_interval <= 0:
            raise ValueError("fraud_proof_interval must be positive")
        self.fraud_proof_interval = fraud_proof_interval
        self.min_collateral = min_collateral
        self._key_lookup: KeyLookup = key_lookup or (lambda _defender: None)
        self._obligations: dict[int, int] = {}
        self._commitments: dict[DumpNumberRange, PaymentCommitment] = {}
        self._challenges: dict[DumpNumberRange, PaymentChallenge] = {}

    # ------------------------------------------------------------------
    # Obligations and commitments
    # ------------------------------------------------------------------

    def record_obligation(self, dump_number: int, fee: int) -> None:
        """Record the fee owed by a newly confirmed record."""
        if dump_number in self._obligations:
            raise ValueError(f"Obligation for data store {dump_number} already recorded")
        if fee < 0:
            raise ValueError(f"Fee must be non-negative, got {fee}")
        self._obligations[dump_number] = fee
        logger.debug("Recorded obligation %d for data store %d.", fee, dump_number)

    def fee_for(self, dump_range: DumpNumberRange) -> int:
        """Total obligation over *dump_range*.

        Raises
        ------
        RecordNotConfirmedError
            If any dump number in range has no obligation.
        """
        self._require_confirmed(dump_range)
        return sum(self._obligations[n] for n in dump_range.dump_numbers())

    def commit_payment(
        self,
        defender: str,
        dump_range: DumpNumberRange,
        claimed_fee: int,
        block: int,
    ) -> PaymentCommitment:
        """Record the defender's claimed fee for *dump_range*.

        Raises
        ------
        RecordNotConfirmedError
            If any record in range is not confirmed.
        PaymentAlreadySettledError
            If a commitment overlapping this range already exists.
        """
        self._require_confirmed(dump_range)
        if claimed_fee < 0:
            raise ValueError(f"Claimed fee must be non-negative, got {claimed_fee}")
        for existing in self._commitments:
            if existing.overlaps(dump_range):
                raise PaymentAlreadySettledError(
                    f"Payment for {existing} overlaps {dump_range}"
                )
        commitment = PaymentCommitment(
            defender=defender,
            dump_range=dump_range,
            claimed_fee=claimed_fee,
            committed_block=block,
        )
        self._commitments[dump_range] = commitment
        logger.info(
            "Payment committed by %s for %s: claimed %d.",
            defender, dump_range, claimed_fee,
        )
        return commitment

    def finalize_unchallenged(
        self, dump_range: DumpNumberRange, block: int
    ) -> PaymentCommitment:
        """Trust an unchallenged claim once its fraud-proof window has passed.

        Raises
        ------
        ChallengeStillOpenError
            If the window has not passed yet; try again later.
        """
        commitment = self._require_commitment(dump_range)
        if commitment.settled:
            raise PaymentAlreadySettledError(f"Payment for {dump_range} is already settled")
        if dump_range in self._challenges:
            raise ChallengeAlreadyOpenError(
                f"Payment for {dump_range} is under challenge; resolve it instead"
            )
        window_end = commitment.committed_block + self.fraud_proof_interval
        if block < window_end:
            raise ChallengeStillOpenError(
                f"Payment for {dump_range} can be challenged until block {window_end}"
            )
        settled = commitment.model_copy(update={"settled": True})
        self._commitments[dump_range] = settled
        logger.info(
            "Payment for %s trusted unchallenged: %d.", dump_range, settled.claimed_fee
        )
        return settled

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------

    def open_challenge(
        self,
        dump_range: DumpNumberRange,
        collateral: int,
        challenger: str,
        block: int,
    ) -> PaymentChallenge:
        """Open a challenge against the claimed fee for *dump_range*.

        All checks run before any state is touched, so a rejected
        challenge leaves no trace.

        Raises
        ------
        RecordNotConfirmedError, InsufficientCollateralError,
        ChallengeAlreadyOpenError, NoPaymentCommitmentError,
        PaymentAlreadySettledError
        """
        self._require_confirmed(dump_range)
        if collateral < self.min_collateral:
            raise InsufficientCollateralError(
                f"Collateral {collateral} is below the minimum {self.min_collateral}"
            )
        for other in self.active_challenges():
            if other.dump_range.overlaps(dump_range):
                raise ChallengeAlreadyOpenError(
                    f"A challenge over {other.dump_range} is already open"
                )
        commitment = self._require_commitment(dump_range)
        window_end = commitment.committed_block + self.fraud_proof_interval
        if commitment.settled or dump_range in self._challenges or block >= window_end:
            raise PaymentAlreadySettledError(
                f"Payment for {dump_range} can no longer be challenged"
            )

        challenge = PaymentChallenge(
            dump_range=dump_range,
            challenger=challenger,
            defender=commitment.defender,
            collateral=collateral,
            claimed_fee=commitment.claimed_fee,
            opened_block=block,
            deadline_block=block + self.fraud_proof_interval,
        )
        self._challenges[dump_range] = challenge
        logger.info(
            "Challenge opened by %s over %s with collateral %d (deadline %d).",
            challenger, dump_range, collateral, challenge.deadline_block,
        )
        return challenge

    def resolve(
        self,
        dump_range: DumpNumberRange,
        evidence: FeeRecomputationEvidence | DefenderConcessionEvidence | None,
        block: int,
    ) -> PaymentChallenge:
        """Resolve the pending challenge over *dump_range*.

        Before the deadline the evidence decides the outcome.  At or after
        the deadline the defender wins by default.

        Raises
        ------
        UnknownChallengeError
            No pending challenge over this exact range.
        ChallengeStillOpenError
            Before the deadline without evidence; try again later.
        InvalidEvidenceError
            The evidence fails its kind's validation.
        """
        challenge = self._challenges.get(dump_range)
        if challenge is None or not challenge.is_pending:
            raise UnknownChallengeError(f"No pending challenge over {dump_range}")

        if block >= challenge.deadline_block:
            if evidence is not None:
                logger.warning(
                    "Evidence for %s arrived at block %d, after deadline %d; ignored.",
                    dump_range, block, challenge.deadline_block,
                )
            outcome, resolved_fee = ChallengeOutcome.DEFENDER_WINS, challenge.claimed_fee
        elif evidence is None:
            raise ChallengeStillOpenError(
                f"Challenge over {dump_range} is open until block {challenge.deadline_block}"
            )
        else:
            validator = EVIDENCE_VALIDATORS[evidence.kind]
            outcome, resolved_fee = validator(
                evidence, challenge, self._obligations, self._key_lookup
            )

        winner = (
            challenge.challenger
            if outcome == ChallengeOutcome.CHALLENGER_WINS
            else challenge.defender
        )
        resolved = challenge.model_copy(
            update={
                "outcome": outcome,
                "collateral_recipient": winner,
                "resolved_fee": resolved_fee,
                "resolved_block": block,
            }
        )
        self._challenges[dump_range] = resolved
        self._commitments[dump_range] = self._commitments[dump_range].model_copy(
            update={"settled": True}
        )
        logger.info(
            "Challenge over %s resolved: %s, fee %d, collateral %d to %s.",
            dump_range, outcome.value, resolved_fee, challenge.collateral, winner,
        )
        return resolved

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_challenge(self, dump_range: DumpNumberRange) -> PaymentChallenge | None:
        return self._challenges.get(dump_range)

    def get_commitment(self, dump_range: DumpNumberRange) -> PaymentCommitment | None:
        return self._commitments.get(dump_range)

    def active_challenges(self) -> list[PaymentChallenge]:
        return [c for c in self._challenges.values() if c.is_pending]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_confirmed(self, dump_range: DumpNumberRange) -> None:
        # Obligations are keyed by dump number, so no range can extend past the highest
        highest = max(self._obligations, default=0)
        if dump_range.end > highest:
            raise RecordNotConfirmedError(
                f"{dump_range} extends past the last confirmed data store ({highest})"
            )
        missing = next(
            (n for n in dump_range.dump_numbers() if n not in self._obligations), None
        )
        if missing is not None:
            raise RecordNotConfirmedError(
                f"Data store {missing} in {dump_range} is not confirmed"
            )

    def _require_commitment(self, dump_range: DumpNumberRange) -> PaymentCommitment:
        commitment = self._commitments.get(dump_range)
        if commitment is None:
            raise NoPaymentCommitmentError(f"No payment was committed for {dump_range}")
        return commitment
