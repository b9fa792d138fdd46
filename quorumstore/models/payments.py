"""Escrowed payment models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class EscrowedPayment(BaseModel):
    """Funds earmarked for a recipient, claimable after the withdrawal delay."""

    model_config = ConfigDict(frozen=True)

    recipient: str
    index: int  # position in the recipient's payment list
    amount: int
    created_block: int
    claimed: bool = False

    def is_claimable(self, block: int, withdrawal_delay: int) -> bool:
        """Unclaimed and at least ``withdrawal_delay`` blocks old."""
        return not self.claimed and block >= self.created_block + withdrawal_delay


class ClaimResult(BaseModel):
    """Outcome of one ``claim`` call."""

    model_config = ConfigDict(frozen=True)

    recipient: str
    claimed: tuple[EscrowedPayment, ...] = ()
    amount: int = 0
    payments_completed: int = 0

    @property
    def count(self) -> int:
        return len(self.claimed)
