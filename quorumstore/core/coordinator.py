"""Protocol coordinator — the central wiring point of a QuorumStore ledger.

The Coordinator owns one instance of each component (StakeRegistry,
DataStoreLedger, PaymentDisputeManager, EscrowedPayout, OperatorSlasher)
and is the only place where one component's result becomes another
component's input:

- confirm          -> fee obligation recorded, signers bonded until expiry
- resolve/finalize -> resolved fee escrowed to the defender,
                      collateral escrowed to the winner,
                      defender frozen when it overclaimed

Components never reference one another; they receive lookups or plain
values.  Every successful operation is appended to the journal, if one
is configured, after its in-memory effects have been applied.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from quorumstore.config import ProtocolConfig
from quorumstore.core.datastore_ledger import DataStoreLedger
from quorumstore.core.errors import (
    OperatorBondedError,
    OperatorFrozenError,
    StaleUpdateError,
)
from quorumstore.core.escrowed_payout import EscrowedPayout
from quorumstore.core.journal import ProtocolJournal
from quorumstore.core.payment_disputes import PaymentDisputeManager, compute_fee
from quorumstore.core.production_guard import enforce_production_constraints
from quorumstore.core.signature_aggregator import SignatureAggregator
from quorumstore.core.slasher import OperatorSlasher
from quorumstore.core.stake_registry import StakeRegistry
from quorumstore.models.disputes import (
    ChallengeOutcome,
    DefenderConcessionEvidence,
    DumpNumberRange,
    FeeRecomputationEvidence,
    PaymentChallenge,
    PaymentCommitment,
)
from quorumstore.models.journal import JournalEntry
from quorumstore.models.payments import ClaimResult, EscrowedPayment
from quorumstore.models.records import DataStoreRecord
from quorumstore.models.signatures import SignatureSet
from quorumstore.models.stakes import OperatorStakeSnapshot

logger = logging.getLogger(__name__)


class Coordinator:
    """Central protocol coordinator.

    Parameters
    ----------
    config:
        Protocol configuration. Uses defaults if not provided.
    ledger_id:
        Identifier scoping this coordinator's journal entries.
    journal:
        Optional append-only journal.  Without one, state is in-memory only.
    """

    def __init__(
        self,
        config: ProtocolConfig | None = None,
        ledger_id: str | None = None,
        *,
        journal: ProtocolJournal | None = None,
    ) -> None:
        self.config = config or ProtocolConfig()
        enforce_production_constraints(self.config)

        self.stakes = StakeRegistry()
        self.aggregator = SignatureAggregator()
        self.ledger = DataStoreLedger(self.stakes, self.aggregator)
        self.disputes = PaymentDisputeManager(
            fraud_proof_interval=self.config.fraud_proof_interval,
            min_collateral=self.config.min_collateral,
            key_lookup=self.stakes.public_key_of,
        )
        self.payout = EscrowedPayout(
            withdrawal_delay=self.config.withdrawal_delay,
            max_withdrawal_delay=self.config.max_withdrawal_delay,
        )
        self.slasher = OperatorSlasher()
        self.journal = journal

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.ledger_id = ledger_id or f"qs-{ts}-{uuid.uuid4().hex[:3]}"

    # ------------------------------------------------------------------
    # Operators and stake
    # ------------------------------------------------------------------

    def register_operator(self, operator: str, public_key: str, *, block: int = 0) -> None:
        self.stakes.register_operator(operator, public_key)
        self._record("stakes", "register", operator, block, {"public_key": public_key})

    def update_stake(
        self, operator: str, weight: int, as_of_index: int, *, block: int = 0
    ) -> OperatorStakeSnapshot:
        """Record a stake change taking effect at dump number *as_of_index*.

        Raises
        ------
        StaleUpdateError
            If *as_of_index* is not after the operator's last update, or if a
            data store with that dump number already exists.
        """
        self._check_ahead_of_ledger(operator, as_of_index)
        snapshot = self.stakes.record_stake_update(operator, weight, as_of_index)
        self._record(
            "stakes", "stake_update", operator, block,
            {"weight": weight, "as_of_index": as_of_index},
        )
        return snapshot

    def deregister_operator(self, operator: str, as_of_index: int, *, block: int) -> None:
        """Deregister *operator*, refusing while it is frozen or still bonded.

        Raises
        ------
        OperatorFrozenError, OperatorBondedError, StaleUpdateError
        """
        if self.slasher.is_frozen(operator):
            raise OperatorFrozenError(f"Operator {operator} is frozen")
        if not self.slasher.can_withdraw(operator, block):
            raise OperatorBondedError(
                f"Operator {operator} is bonded until block "
                f"{self.slasher.bonded_until(operator)}"
            )
        self._check_ahead_of_ledger(operator, as_of_index)
        self.stakes.deregister_operator(operator, as_of_index)
        self._record("stakes", "deregister", operator, block, {"as_of_index": as_of_index})

    def _check_ahead_of_ledger(self, operator: str, as_of_index: int) -> None:
        # Weights for an existing dump number are fixed once it is allocated
        next_dump = self.ledger.next_dump_number
        if as_of_index < next_dump:
            raise StaleUpdateError(
                f"Stake change for {operator} at index {as_of_index} would rewrite "
                f"weights of existing data stores; next dump number is {next_dump}"
            )

    # ------------------------------------------------------------------
    # Data stores
    # ------------------------------------------------------------------

    def init_data_store(
        self,
        content_digest: str,
        total_bytes: int,
        store_period_length: int,
        submitter: str,
        quorum_threshold_bps: int | None = None,
        *,
        block: int = 0,
    ) -> DataStoreRecord:
        threshold = (
            self.config.default_quorum_bps
            if quorum_threshold_bps is None
            else quorum_threshold_bps
        )
        record = self.ledger.init_data_store(
            content_digest, total_bytes, store_period_length, submitter, threshold,
            block=block,
        )
        self._record(
            "datastore", "init", str(record.dump_number), block,
            {
                "content_digest": record.content_digest,
                "total_bytes": total_bytes,
                "store_period_length": store_period_length,
                "submitter": submitter,
                "quorum_threshold_bps": threshold,
            },
        )
        return record

    def signatory_digest(self, dump_number: int) -> str:
        """The hex digest operators must sign to confirm *dump_number*."""
        record = self.ledger.get_record(dump_number)
        if record is None:
            raise KeyError(dump_number)
        return record.signatory_digest

    def confirm(
        self,
        dump_number: int,
        content_digest: str,
        signature_set: SignatureSet,
        *,
        block: int = 0,
    ) -> DataStoreRecord:
        """Confirm a data store, then record its fee and bond its signers.

        The journal entry is written last.  If the append fails the error
        propagates, but the confirmation, obligation and bonds are already
        in effect: in-memory state is authoritative and the journal is its
        audit trail, so a failed append means the journal is behind, never
        that the record is unconfirmed.
        """
        record = self.ledger.confirm(dump_number, content_digest, signature_set)

        fee = compute_fee(
            record.total_bytes, record.store_period_length, self.config.fee_per_byte_block
        )
        self.disputes.record_obligation(dump_number, fee)
        for signer in signature_set.signers:
            self.slasher.record_last_stake_update(signer, record.expiry_block)

        self._record(
            "datastore", "initialized->confirmed", str(dump_number), block,
            {
                "signers": signature_set.signers,
                "signed_weight": record.signed_weight,
                "total_weight": record.total_weight,
                "signature_set_hash": record.signature_set_hash,
                "fee": fee,
            },
        )
        return record

    def expire(self, dump_number: int, *, block: int) -> DataStoreRecord:
        record = self.ledger.expire(dump_number, block)
        self._record("datastore", "initialized->expired", str(dump_number), block)
        return record

    # ------------------------------------------------------------------
    # Payments and disputes
    # ------------------------------------------------------------------

    def commit_payment(
        self, defender: str, dump_range: DumpNumberRange, claimed_fee: int, *, block: int
    ) -> PaymentCommitment:
        commitment = self.disputes.commit_payment(defender, dump_range, claimed_fee, block)
        self._record(
            "disputes", "commit", str(dump_range), block,
            {"defender": defender, "claimed_fee": claimed_fee},
        )
        return commitment

    def open_challenge(
        self, dump_range: DumpNumberRange, collateral: int, challenger: str, *, block: int
    ) -> PaymentChallenge:
        challenge = self.disputes.open_challenge(dump_range, collateral, challenger, block)
        self._record(
            "disputes", "challenge_opened", str(dump_range), block,
            {
                "challenger": challenger,
                "collateral": collateral,
                "deadline_block": challenge.deadline_block,
            },
        )
        return challenge

    def resolve_challenge(
        self,
        dump_range: DumpNumberRange,
        evidence: FeeRecomputationEvidence | DefenderConcessionEvidence | None = None,
        *,
        block: int,
    ) -> PaymentChallenge:
        """Resolve a challenge and settle its payouts.

        The resolved fee is escrowed to the defender, the collateral to the
        winner.  A defender shown to have claimed more than it was owed is
        frozen; losing over an under-claim only forfeits the collateral.
        """
        challenge = self.disputes.resolve(dump_range, evidence, block)

        if challenge.resolved_fee:
            self.payout.create_payment(challenge.defender, challenge.resolved_fee, block)
        if challenge.collateral:
            self.payout.create_payment(
                challenge.collateral_recipient, challenge.collateral, block
            )
        overclaimed = (
            challenge.outcome == ChallengeOutcome.CHALLENGER_WINS
            and challenge.resolved_fee is not None
            and challenge.claimed_fee > challenge.resolved_fee
        )
        if overclaimed:
            self.slasher.freeze_operator(
                challenge.defender,
                f"overclaimed payment for {dump_range}: claimed "
                f"{challenge.claimed_fee}, owed {challenge.resolved_fee}",
            )

        self._record(
            "disputes", f"pending->{challenge.outcome.value}", str(dump_range), block,
            {
                "evidence": evidence.kind.value if evidence is not None else None,
                "resolved_fee": challenge.resolved_fee,
                "collateral_recipient": challenge.collateral_recipient,
            },
        )
        return challenge

    def finalize_unchallenged(
        self, dump_range: DumpNumberRange, *, block: int
    ) -> PaymentCommitment:
        """Trust an unchallenged claim and escrow it to the defender."""
        commitment = self.disputes.finalize_unchallenged(dump_range, block)
        if commitment.claimed_fee:
            self.payout.create_payment(commitment.defender, commitment.claimed_fee, block)
        self._record(
            "disputes", "finalized", str(dump_range), block,
            {"defender": commitment.defender, "claimed_fee": commitment.claimed_fee},
        )
        return commitment

    # ------------------------------------------------------------------
    # Escrow
    # ------------------------------------------------------------------

    def claim(self, recipient: str, max_count: int, *, block: int) -> ClaimResult:
        """Claim matured payments; frozen recipients are refused."""
        if self.slasher.is_frozen(recipient):
            raise OperatorFrozenError(
                f"Recipient {recipient} is frozen: {self.slasher.freeze_reason(recipient)}"
            )
        result = self.payout.claim(recipient, max_count, block)
        if result.count:
            self._record(
                "escrow", "claim", recipient, block,
                {
                    "count": result.count,
                    "amount": result.amount,
                    "payments_completed": result.payments_completed,
                },
            )
        return result

    def set_withdrawal_delay(self, new_value: int, *, block: int = 0) -> None:
        self.payout.set_withdrawal_delay(new_value)
        self._record("escrow", "withdrawal_delay", "escrow", block, {"delay": new_value})

    def payments_of(self, recipient: str) -> list[EscrowedPayment]:
        return self.payout.payments_of(recipient)

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def _record(
        self,
        component: str,
        event: str,
        subject: str,
        block: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        if self.journal is None:
            return
        self.journal.append(
            JournalEntry(
                ledger_id=self.ledger_id,
                component=component,
                event=event,
                subject=subject,
                block=block,
                details=details or {},
            )
        )

    def verify_journal(self) -> bool:
        """Verify the hash chain of this coordinator's journal entries."""
        if self.journal is None:
            return True
        return self.journal.verify_chain(self.ledger_id)
