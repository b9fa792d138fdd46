"""Data store record models — the lifecycle owned by the DataStoreLedger."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

# Quorum thresholds are expressed in basis points of total stake weight.
QUORUM_DENOMINATOR: int = 10_000

_HEX32 = re.compile(r"^[0-9a-f]{64}$")


class RecordStatus(str, Enum):
    """Lifecycle state of a data store record."""

    INITIALIZED = "initialized"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"


# Confirmed and Expired are terminal.
VALID_TRANSITIONS: dict[RecordStatus, set[RecordStatus]] = {
    RecordStatus.INITIALIZED: {RecordStatus.CONFIRMED, RecordStatus.EXPIRED},
    RecordStatus.CONFIRMED: set(),
    RecordStatus.EXPIRED: set(),
}


class DataStoreRecord(BaseModel):
    """A single data-availability record, identified by its dump number."""

    model_config = ConfigDict(frozen=True)

    dump_number: int
    content_digest: str  # 32-byte root, lowercase hex
    total_bytes: int
    store_period_length: int  # blocks the data must remain available
    submitter: str
    quorum_threshold_bps: int
    init_block: int
    signatory_digest: str  # what operators sign; see hasher.compute_signatory_digest
    status: RecordStatus = RecordStatus.INITIALIZED
    signature_set_hash: str = ""  # set on confirmation
    signed_weight: int = 0
    total_weight: int = 0

    @field_validator("content_digest", "signatory_digest")
    @classmethod
    def _check_hex32(cls, value: str) -> str:
        value = value.lower()
        if not _HEX32.match(value):
            raise ValueError("expected a 32-byte digest as 64 hex characters")
        return value

    @property
    def expiry_block(self) -> int:
        """First block at which an unconfirmed record may be expired."""
        return self.init_block + self.store_period_length

    @property
    def is_confirmed(self) -> bool:
        return self.status == RecordStatus.CONFIRMED
