"""Operator stake snapshot models (append-only history)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class OperatorStakeSnapshot(BaseModel):
    """An operator's weight over the dump-number window [start_index, end_index).

    ``end_index`` is ``None`` while the snapshot is the operator's current
    one.  Windows for one operator never overlap.
    """

    model_config = ConfigDict(frozen=True)

    operator: str
    weight: int
    start_index: int
    end_index: int | None = None

    def covers(self, index: int) -> bool:
        """Whether *index* falls inside this snapshot's window."""
        if index < self.start_index:
            return False
        return self.end_index is None or index < self.end_index
