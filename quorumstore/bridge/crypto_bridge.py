"""Crypto bridge — Ed25519 signing and verification via PyNaCl.

Operators sign the signatory digest of a data store with Ed25519 keys.
All keys and signatures cross this boundary hex-encoded:

- private key (seed): 64 hex chars (32 bytes)
- public key:         64 hex chars (32 bytes)
- signature:          128 hex chars (64 bytes)

Verification is fail-closed: malformed keys or signatures verify as
``False`` instead of raising.
"""

from __future__ import annotations

import hashlib
import logging

import nacl.signing
from nacl.exceptions import BadSignatureError

logger = logging.getLogger(__name__)


def generate_keypair() -> tuple[str, str]:
    """Generate an Ed25519 signing key-pair.

    Returns
    -------
    tuple[str, str]
        ``(private_key_hex, public_key_hex)``
    """
    sk = nacl.signing.SigningKey.generate()
    return (sk.encode().hex(), sk.verify_key.encode().hex())


def public_key_from_private(private_key: str) -> str:
    """Derive the hex public key for a hex private key (seed)."""
    sk = nacl.signing.SigningKey(bytes.fromhex(private_key))
    return sk.verify_key.encode().hex()


def sign_data(data: bytes, private_key: str) -> str:
    """Sign *data* with *private_key* and return the hex-encoded signature.

    Parameters
    ----------
    data:
        Raw bytes to sign (typically a 32-byte signatory digest).
    private_key:
        Hex-encoded private key (seed) returned by ``generate_keypair()``.
    """
    sk = nacl.signing.SigningKey(bytes.fromhex(private_key))
    return sk.sign(data).signature.hex()


def verify_data(data: bytes, signature: str, public_key: str) -> bool:
    """Verify that *signature* is valid for *data* under *public_key*.

    Returns ``False`` if the signature is empty or malformed, if the key
    is malformed, or if verification fails.
    """
    if not signature or not public_key:
        return False
    try:
        vk = nacl.signing.VerifyKey(bytes.fromhex(public_key))
        vk.verify(data, bytes.fromhex(signature))
        return True
    except BadSignatureError:
        return False
    except (ValueError, TypeError) as exc:
        # Malformed hex or wrong byte length (nacl raises ValueError subclasses)
        logger.debug("verify_data: malformed key or signature: %s", exc)
        return False


def key_fingerprint(public_key: str) -> str:
    """Compute a short fingerprint of a public key.

    Returns the first 16 hex characters of SHA-256(public_key_bytes).
    Used in journal entries and CLI output instead of the full key.
    """
    if not public_key:
        return ""
    digest = hashlib.sha256(public_key.encode("utf-8")).hexdigest()
    return digest[:16]
