"""Payment dispute models — commitments, challenges, and evidence.

Evidence is a closed, tagged variant: each kind carries a ``kind`` literal
and is validated by exactly one function registered in
``quorumstore.core.payment_disputes.EVIDENCE_VALIDATORS``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class DumpNumberRange(BaseModel):
    """Inclusive range of dump numbers ``[start, end]``."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @model_validator(mode="after")
    def _check_order(self) -> DumpNumberRange:
        if self.start < 1 or self.end < self.start:
            raise ValueError(f"invalid dump number range [{self.start}, {self.end}]")
        return self

    def overlaps(self, other: DumpNumberRange) -> bool:
        return self.start <= other.end and other.start <= self.end

    def dump_numbers(self) -> range:
        return range(self.start, self.end + 1)

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


class PaymentCommitment(BaseModel):
    """A defender's claimed fee for a range of confirmed records."""

    model_config = ConfigDict(frozen=True)

    defender: str
    dump_range: DumpNumberRange
    claimed_fee: int
    committed_block: int
    settled: bool = False


class ChallengeOutcome(str, Enum):
    """Resolution state of a payment challenge."""

    PENDING = "pending"
    CHALLENGER_WINS = "challenger_wins"
    DEFENDER_WINS = "defender_wins"


class PaymentChallenge(BaseModel):
    """A dispute over the claimed fee of one committed range."""

    model_config = ConfigDict(frozen=True)

    dump_range: DumpNumberRange
    challenger: str
    defender: str
    collateral: int
    claimed_fee: int
    opened_block: int
    deadline_block: int
    outcome: ChallengeOutcome = ChallengeOutcome.PENDING
    collateral_recipient: str = ""
    resolved_fee: int | None = None
    resolved_block: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.outcome == ChallengeOutcome.PENDING


# ---------------------------------------------------------------------------
# Evidence (tagged variant)
# ---------------------------------------------------------------------------


class EvidenceKind(str, Enum):
    """The fixed set of evidence formats a resolver accepts."""

    FEE_RECOMPUTATION = "fee_recomputation"
    DEFENDER_CONCESSION = "defender_concession"


class FeeRecomputationEvidence(BaseModel):
    """Per-record fees recomputed by the challenger.

    Must cover the disputed range exactly.  Each fee is checked against the
    obligation recorded when the record was confirmed.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal[EvidenceKind.FEE_RECOMPUTATION] = EvidenceKind.FEE_RECOMPUTATION
    fees: dict[int, int]

    @property
    def total(self) -> int:
        return sum(self.fees.values())


class DefenderConcessionEvidence(BaseModel):
    """The defender's Ed25519 signature over the challenge digest."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EvidenceKind.DEFENDER_CONCESSION] = EvidenceKind.DEFENDER_CONCESSION
    signature: str


Evidence = Annotated[
    Union[FeeRecomputationEvidence, DefenderConcessionEvidence],
    Field(discriminator="kind"),
]

_evidence_adapter: TypeAdapter[Any] = TypeAdapter(Evidence)


def parse_evidence(data: dict[str, Any]) -> FeeRecomputationEvidence | DefenderConcessionEvidence:
    """Deserialize evidence by its ``kind`` tag; unknown kinds are rejected."""
    return _evidence_adapter.validate_python(data)
