"""Canonical hashing helpers for signatory digests and journal sealing.

Every hash in QuorumStore is SHA-256 over canonical JSON so that an auditor
can recompute any digest from the public fields alone.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from quorumstore.models.signatures import SignatureSet


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_signatory_digest(
    dump_number: int, content_digest: str, total_bytes: int
) -> str:
    """SHA-256 of canonical(dump_number + content_digest + total_bytes).

    This is the message every operator signs for a data store.  Binding
    the dump number prevents a signature for one record being replayed
    against another record with the same content.
    """
    payload = {
        "dump_number": dump_number,
        "content_digest": content_digest,
        "total_bytes": total_bytes,
    }
    return sha256_hex(canonical_json_bytes(payload))


def compute_signature_set_hash(signature_set: SignatureSet) -> str:
    """SHA-256 of the ordered (signer, signature) pairs.

    Stored on a confirmed record as the aggregate-signature hash.
    """
    payload = [[e.signer, e.signature] for e in signature_set.entries]
    return sha256_hex(canonical_json_bytes(payload))


def compute_challenge_digest(start: int, end: int, claimed_fee: int) -> str:
    """SHA-256 of the disputed range and the claimed fee.

    A defender concedes a challenge by signing this digest.
    """
    payload = {"start": start, "end": end, "claimed_fee": claimed_fee}
    return sha256_hex(canonical_json_bytes(payload))


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """SHA-256 of a journal entry (excluding the entry_hash field itself).

    This is the seal that makes each entry tamper-evident.
    """
    d = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    return sha256_hex(canonical_json_bytes(d))
