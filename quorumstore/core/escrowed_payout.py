"""Escrowed payout — delayed release of funds earmarked for a recipient.

Payments are claimed strictly in creation order.  Each recipient has a
``payments_completed`` cursor that only advances over claimed entries, so
it is always a true prefix count of the recipient's payment list.
"""

from __future__ import annotations

import logging

from quorumstore.core.errors import DelayTooLargeError
from quorumstore.models.payments import ClaimResult, EscrowedPayment

logger = logging.getLogger(__name__)


class EscrowedPayout:
    """Holds payments until they are ``withdrawal_delay`` blocks old.

    Parameters
    ----------
    withdrawal_delay:
        Minimum age in blocks before a payment is claimable.
    max_withdrawal_delay:
        Hard upper bound for ``set_withdrawal_delay``.
    """

    def __init__(self, withdrawal_delay: int, max_withdrawal_delay: int) -> None:
        self.max_withdrawal_delay = max_withdrawal_delay
        self._withdrawal_delay = 0
        self.set_withdrawal_delay(withdrawal_delay)
        self._payments: dict[str, list[EscrowedPayment]] = {}
        self._completed: dict[str, int] = {}
        self._withdrawn: dict[str, int] = {}

    @property
    def withdrawal_delay(self) -> int:
        return self._withdrawal_delay

    def set_withdrawal_delay(self, new_value: int) -> None:
        """Change the delay applied to every unclaimed payment.

        Raises
        ------
        DelayTooLargeError
            If *new_value* exceeds ``max_withdrawal_delay``.
        """
        if new_value > self.max_withdrawal_delay:
            raise DelayTooLargeError(
                f"Withdrawal delay {new_value} exceeds maximum {self.max_withdrawal_delay}"
            )
        if new_value < 0:
            raise ValueError(f"Withdrawal delay must be non-negative, got {new_value}")
        logger.info("Withdrawal delay set to %d blocks.", new_value)
        self._withdrawal_delay = new_value

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def create_payment(self, recipient: str, amount: int, block: int) -> EscrowedPayment:
        """Append an unclaimed payment to *recipient*'s list."""
        if amount <= 0:
            raise ValueError(f"Payment amount must be positive, got {amount}")
        payments = self._payments.setdefault(recipient, [])
        payment = EscrowedPayment(
            recipient=recipient,
            index=len(payments),
            amount=amount,
            created_block=block,
        )
        payments.append(payment)
        logger.info(
            "Escrowed payment %d of %d for %s at block %d.",
            payment.index, amount, recipient, block,
        )
        return payment

    def claim(self, recipient: str, max_count: int, block: int) -> ClaimResult:
        """Claim up to *max_count* matured payments starting at the cursor.

        Stops at the first payment that is not yet claimable; later
        payments are never claimed ahead of an earlier one.
        """
        if max_count < 0:
            raise ValueError(f"max_count must be non-negative, got {max_count}")
        payments = self._payments.get(recipient, [])
        cursor = self._completed.get(recipient, 0)

        claimed: list[EscrowedPayment] = []
        while cursor < len(payments) and len(claimed) < max_count:
            payment = payments[cursor]
            if not payment.is_claimable(block, self._withdrawal_delay):
                break
            payments[cursor] = payment.model_copy(update={"claimed": True})
            claimed.append(payments[cursor])
            cursor += 1

        amount = sum(p.amount for p in claimed)
        self._completed[recipient] = cursor
        if amount:
            self._withdrawn[recipient] = self._withdrawn.get(recipient, 0) + amount
            logger.info(
                "Claimed %d payments (%d) for %s at block %d; completed=%d.",
                len(claimed), amount, recipient, block, cursor,
            )
        return ClaimResult(
            recipient=recipient,
            claimed=tuple(claimed),
            amount=amount,
            payments_completed=cursor,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def payments_of(self, recipient: str) -> list[EscrowedPayment]:
        return list(self._payments.get(recipient, []))

    def payments_completed(self, recipient: str) -> int:
        return self._completed.get(recipient, 0)

    def withdrawn_total(self, recipient: str) -> int:
        return self._withdrawn.get(recipient, 0)

    def pending_amount(self, recipient: str) -> int:
        return sum(p.amount for p in self._payments.get(recipient, []) if not p.claimed)
