"""Bridge to external cryptography (PyNaCl Ed25519)."""

from quorumstore.bridge.crypto_bridge import (
    generate_keypair,
    key_fingerprint,
    public_key_from_private,
    sign_data,
    verify_data,
)

__all__ = [
    "generate_keypair",
    "key_fingerprint",
    "public_key_from_private",
    "sign_data",
    "verify_data",
]
