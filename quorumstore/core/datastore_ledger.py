"""Data store ledger — record lifecycle and quorum confirmation.

Enforces:
- Valid status transitions only (VALID_TRANSITIONS table)
- Confirmation against stake weights as of the record's dump number
- Fail-fast signature verification (no partial quorum credit)
- Confirmed is terminal: a second confirm is rejected without re-verifying
"""

from __future__ import annotations

import logging

from quorumstore.core.errors import (
    AlreadyConfirmedError,
    DigestMismatchError,
    InvalidQuorumError,
    InvalidSizeError,
    NotYetExpiredError,
    QuorumNotMetError,
    UnknownRecordError,
)
from quorumstore.core.hasher import compute_signatory_digest, compute_signature_set_hash
from quorumstore.core.signature_aggregator import SignatureAggregator
from quorumstore.core.stake_registry import StakeRegistry
from quorumstore.models.records import (
    QUORUM_DENOMINATOR,
    VALID_TRANSITIONS,
    DataStoreRecord,
    RecordStatus,
)
from quorumstore.models.signatures import SignatureSet

logger = logging.getLogger(__name__)


class DataStoreLedger:
    """Owns every DataStoreRecord and its Initialized → Confirmed/Expired lifecycle.

    Parameters
    ----------
    stake_registry:
        Read-only source of historical weights and operator keys.
    aggregator:
        Signature verification primitive.  A default one is created if
        not provided.
    """

    def __init__(
        self,
        stake_registry: StakeRegistry,
        aggregator: SignatureAggregator | None = None,
    ) -> None:
        self._stakes = stake_registry
        self._aggregator = aggregator or SignatureAggregator()
        # dump_number -> record; dump numbers start at 1
        self._records: dict[int, DataStoreRecord] = {}
        self._next_dump_number = 1

    @property
    def next_dump_number(self) -> int:
        return self._next_dump_number

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_data_store(
        self,
        content_digest: str,
        total_bytes: int,
        store_period_length: int,
        submitter: str,
        quorum_threshold_bps: int,
        *,
        block: int = 0,
    ) -> DataStoreRecord:
        """Allocate the next dump number and persist an Initialized record.

        Raises
        ------
        InvalidSizeError
            If *total_bytes* is not positive.
        InvalidQuorumError
            If *quorum_threshold_bps* is outside ``[1, QUORUM_DENOMINATOR]``.
        """
        if total_bytes <= 0:
            raise InvalidSizeError(f"Data store size must be positive, got {total_bytes}")
        if not 1 <= quorum_threshold_bps <= QUORUM_DENOMINATOR:
            raise InvalidQuorumError(
                f"Quorum threshold {quorum_threshold_bps} bps is outside "
                f"[1, {QUORUM_DENOMINATOR}]"
            )
        if store_period_length <= 0:
            raise ValueError(
                f"Store period length must be positive, got {store_period_length}"
            )

        dump_number = self._next_dump_number
        record = DataStoreRecord(
            dump_number=dump_number,
            content_digest=content_digest,
            total_bytes=total_bytes,
            store_period_length=store_period_length,
            submitter=submitter,
            quorum_threshold_bps=quorum_threshold_bps,
            init_block=block,
            signatory_digest=compute_signatory_digest(
                dump_number, content_digest.lower(), total_bytes
            ),
        )
        self._records[dump_number] = record
        self._next_dump_number += 1

        logger.info(
            "Initialized data store %d (%d bytes, period %d, quorum %d bps) for %s.",
            dump_number, total_bytes, store_period_length,
            quorum_threshold_bps, submitter,
        )
        return record

    def confirm(
        self,
        dump_number: int,
        content_digest: str,
        signature_set: SignatureSet,
    ) -> DataStoreRecord:
        """Confirm a record once a stake-weighted quorum has signed it.

        Raises
        ------
        UnknownRecordError
            No Initialized record with this dump number.
        AlreadyConfirmedError
            The record is already Confirmed.
        DigestMismatchError
            *content_digest* differs from the stored digest.
        InvalidSignatureError, DuplicateSignerError, UnknownSignerError
            Propagated unchanged from the aggregator.
        QuorumNotMetError
            Signed weight is below the record's threshold.
        """
        record = self._require_initialized(dump_number)

        if content_digest.lower() != record.content_digest:
            raise DigestMismatchError(
                f"Digest {content_digest[:16]}... does not match data store "
                f"{dump_number} ({record.content_digest[:16]}...)"
            )

        signed = self._aggregator.verify_and_sum(
            record.signatory_digest,
            signature_set,
            weight_lookup=lambda op: self._stakes.weight_at(op, dump_number),
            key_lookup=self._stakes.public_key_of,
        )
        total = self._stakes.total_weight_at(dump_number)

        if total == 0 or signed * QUORUM_DENOMINATOR < total * record.quorum_threshold_bps:
            logger.warning(
                "Quorum not met for data store %d: signed %d of %d (need %d bps).",
                dump_number, signed, total, record.quorum_threshold_bps,
            )
            raise QuorumNotMetError(
                f"Data store {dump_number}: signed weight {signed} of {total} is "
                f"below {record.quorum_threshold_bps} bps"
            )

        confirmed = self._transition(
            record,
            RecordStatus.CONFIRMED,
            signature_set_hash=compute_signature_set_hash(signature_set),
            signed_weight=signed,
            total_weight=total,
        )
        logger.info(
            "Confirmed data store %d with %d signers (weight %d/%d).",
            dump_number, len(signature_set), signed, total,
        )
        return confirmed

    def expire(self, dump_number: int, block: int) -> DataStoreRecord:
        """Expire an unconfirmed record once its store period has elapsed.

        Raises
        ------
        NotYetExpiredError
            *block* is before ``init_block + store_period_length``; try later.
        """
        record = self._require_initialized(dump_number)
        if block < record.expiry_block:
            raise NotYetExpiredError(
                f"Data store {dump_number} cannot expire before block "
                f"{record.expiry_block} (now {block})"
            )
        expired = self._transition(record, RecordStatus.EXPIRED)
        logger.info("Expired data store %d at block %d.", dump_number, block)
        return expired

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_record(self, dump_number: int) -> DataStoreRecord | None:
        return self._records.get(dump_number)

    def status_of(self, dump_number: int) -> RecordStatus | None:
        record = self._records.get(dump_number)
        return record.status if record else None

    def records(self, status: RecordStatus | None = None) -> list[DataStoreRecord]:
        """All records in dump-number order, optionally filtered by status."""
        return [
            r for _, r in sorted(self._records.items())
            if status is None or r.status == status
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_initialized(self, dump_number: int) -> DataStoreRecord:
        record = self._records.get(dump_number)
        if record is None or record.status == RecordStatus.EXPIRED:
            raise UnknownRecordError(
                f"No initialized data store with dump number {dump_number}"
            )
        if record.status == RecordStatus.CONFIRMED:
            raise AlreadyConfirmedError(
                f"Data store {dump_number} is already confirmed"
            )
        return record

    def _transition(
        self, record: DataStoreRecord, target: RecordStatus, **updates: object
    ) -> DataStoreRecord:
        allowed = VALID_TRANSITIONS.get(record.status, set())
        if target not in allowed:
            # _require_initialized makes this unreachable for callers above
            raise RuntimeError(
                f"Cannot transition data store {record.dump_number} from "
                f"{record.status.value} to {target.value}"
            )
        updated = record.model_copy(update={"status": target, **updates})
        self._records[record.dump_number] = updated
        return updated
