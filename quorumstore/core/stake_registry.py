"""Stake registry — per-operator, append-only stake weight history.

Confirmation must observe weights *as of the dump number being confirmed*,
not the weights current at call time, so the registry never overwrites a
weight: an update closes the operator's open window and appends a new one.

Lookups bisect the operator's snapshot list (ordered by ``start_index``),
giving O(log n) ``weight_at``.
"""

from __future__ import annotations

import bisect
import logging

from quorumstore.core.errors import StaleUpdateError
from quorumstore.models.stakes import OperatorStakeSnapshot

logger = logging.getLogger(__name__)


class StakeRegistry:
    """Tracks operator public keys and historical stake weights."""

    def __init__(self) -> None:
        # operator -> snapshots ordered by start_index
        self._history: dict[str, list[OperatorStakeSnapshot]] = {}
        # operator -> parallel list of start indices, for bisect
        self._starts: dict[str, list[int]] = {}
        # operator -> last index at which the history was touched
        self._last_index: dict[str, int] = {}
        self._public_keys: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_operator(self, operator: str, public_key: str) -> None:
        """Record (or rotate) the operator's Ed25519 public key."""
        self._public_keys[operator] = public_key
        logger.debug("Registered key for operator %s.", operator)

    def public_key_of(self, operator: str) -> str | None:
        return self._public_keys.get(operator)

    @property
    def operators(self) -> list[str]:
        """Every operator that has ever had a stake snapshot, sorted."""
        return sorted(self._history)

    # ------------------------------------------------------------------
    # Append-only updates
    # ------------------------------------------------------------------

    def record_stake_update(
        self, operator: str, new_weight: int, as_of_index: int
    ) -> OperatorStakeSnapshot:
        """Append a snapshot starting at *as_of_index*.

        Closes the operator's open window (if any) at *as_of_index*.

        Raises
        ------
        StaleUpdateError
            If *as_of_index* is not greater than the operator's last
            recorded index.
        """
        if new_weight < 0:
            raise ValueError(f"Stake weight must be non-negative, got {new_weight}")
        self._check_fresh(operator, as_of_index)

        self._close_open_window(operator, as_of_index)
        snapshot = OperatorStakeSnapshot(
            operator=operator, weight=new_weight, start_index=as_of_index
        )
        self._history.setdefault(operator, []).append(snapshot)
        self._starts.setdefault(operator, []).append(as_of_index)
        self._last_index[operator] = as_of_index

        logger.info(
            "Stake update: operator=%s weight=%d as_of=%d",
            operator, new_weight, as_of_index,
        )
        return snapshot

    def deregister_operator(self, operator: str, as_of_index: int) -> None:
        """Close the operator's open window without opening a new one.

        Lookups at or after *as_of_index* resolve to unregistered.
        """
        self._check_fresh(operator, as_of_index)
        if not self._close_open_window(operator, as_of_index):
            raise StaleUpdateError(
                f"Operator {operator} has no open stake window to close"
            )
        self._last_index[operator] = as_of_index
        logger.info("Deregistered operator %s as of %d.", operator, as_of_index)

    def _check_fresh(self, operator: str, as_of_index: int) -> None:
        last = self._last_index.get(operator)
        if last is not None and as_of_index <= last:
            raise StaleUpdateError(
                f"Stake update for {operator} at index {as_of_index} is stale: "
                f"last recorded index is {last}"
            )

    def _close_open_window(self, operator: str, end_index: int) -> bool:
        history = self._history.get(operator)
        if not history or history[-1].end_index is not None:
            return False
        history[-1] = history[-1].model_copy(update={"end_index": end_index})
        return True

    # ------------------------------------------------------------------
    # Historical lookups
    # ------------------------------------------------------------------

    def weight_at(self, operator: str, index: int) -> int | None:
        """Weight of *operator* at *index*, or ``None`` if unregistered."""
        snapshot = self.snapshot_at(operator, index)
        return snapshot.weight if snapshot is not None else None

    def snapshot_at(self, operator: str, index: int) -> OperatorStakeSnapshot | None:
        """The unique snapshot whose window contains *index*, if any."""
        starts = self._starts.get(operator)
        if not starts:
            return None
        pos = bisect.bisect_right(starts, index) - 1
        if pos < 0:
            return None
        snapshot = self._history[operator][pos]
        return snapshot if snapshot.covers(index) else None

    def total_weight_at(self, index: int) -> int:
        """Sum of weights of all operators registered at *index*."""
        total = 0
        for operator in self._history:
            weight = self.weight_at(operator, index)
            if weight is not None:
                total += weight
        return total

    def operators_at(self, index: int) -> list[str]:
        """Operators registered at *index*, sorted."""
        return [op for op in self.operators if self.weight_at(op, index) is not None]

    def history(self, operator: str) -> list[OperatorStakeSnapshot]:
        """Copy of the operator's snapshot history."""
        return list(self._history.get(operator, []))
