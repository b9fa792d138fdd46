"""Protocol journal entry model (append-only, hash-chained).

The journal records every successful protocol operation:
- Append-only (no UPDATE, no DELETE)
- Hash-chained (each entry links to the previous via SHA-256)
- Scoped by ``ledger_id`` so several coordinators can share one database
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JournalEntry(BaseModel):
    """A single entry in the protocol journal."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    ledger_id: str
    component: str  # e.g. "datastore", "stakes", "disputes", "escrow"
    event: str  # e.g. "initialized->confirmed", "stake_update"
    subject: str  # dump number, operator, recipient, or range
    block: int = 0
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    details: dict[str, Any] = {}
    schema_version: str = "2026-10"
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed on append, seals this entry
