"""Operator slasher — irreversible freezing and serve-until bonding.

An operator that signed a data store must keep serving it until the
store period ends: ``record_last_stake_update`` raises the operator's
``bonded_until`` block, which only ever grows.  An operator caught
overclaiming payment is frozen; frozen operators stay frozen.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class OperatorSlasher:
    """Tracks frozen operators and the block each is bonded until."""

    def __init__(self) -> None:
        self._frozen: dict[str, str] = {}  # operator -> reason
        self._bonded_until: dict[str, int] = {}

    def freeze_operator(self, operator: str, reason: str = "") -> None:
        """Freeze *operator*.  There is no unfreeze."""
        if operator in self._frozen:
            return
        self._frozen[operator] = reason
        logger.warning("Operator %s frozen: %s", operator, reason or "no reason given")

    def is_frozen(self, operator: str) -> bool:
        return operator in self._frozen

    def freeze_reason(self, operator: str) -> str | None:
        return self._frozen.get(operator)

    def record_last_stake_update(self, operator: str, serve_until: int) -> int:
        """Bond *operator* until at least *serve_until*; returns the new bound."""
        bonded = max(self._bonded_until.get(operator, 0), serve_until)
        self._bonded_until[operator] = bonded
        return bonded

    def bonded_until(self, operator: str) -> int:
        return self._bonded_until.get(operator, 0)

    def can_withdraw(self, operator: str, block: int) -> bool:
        """Not frozen and no longer bonded at *block*."""
        return not self.is_frozen(operator) and block >= self.bonded_until(operator)

    @property
    def frozen_operators(self) -> list[str]:
        return sorted(self._frozen)
