"""HKDF key derivation for the Web Push content encryption key and nonce.

Two-stage chain:
    - Auth stage: mixes the subscriber's auth secret and both public keys
      into the ECDH shared secret
    - Content stage: salts the result and expands the AES key and the nonce
"""

from dataclasses import dataclass

from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.hmac import HMAC
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from .types import (
    AUTH_INFO_PREFIX,
    AUTH_KEY_SIZE,
    CONTENT_KEY_INFO,
    CONTENT_KEY_SIZE,
    NONCE_INFO,
    NONCE_SIZE,
)


@dataclass(frozen=True)
class DerivedKeyMaterial:
    """Key and nonce for a single AES-128-GCM operation."""
    key: bytes  # 16 bytes
    nonce: bytes  # 12 bytes


def hkdf_extract(salt: bytes, ikm: bytes) -> bytes:
    """HKDF-Extract with SHA-256: HMAC(salt, ikm)."""
    h = HMAC(salt, SHA256())
    h.update(ikm)
    return h.finalize()


def hkdf_expand(prk: bytes, info: bytes, length: int) -> bytes:
    """HKDF-Expand with SHA-256."""
    return HKDFExpand(algorithm=SHA256(), length=length, info=info).derive(prk)


def derive_auth_key(
    shared_secret: bytes,
    auth_secret: bytes,
    subscriber_public_key: bytes,
    ephemeral_public_key: bytes,
) -> bytes:
    """Derive the 32-byte intermediate key from the ECDH secret and auth secret.

    Args:
        shared_secret: ECDH shared secret (32 bytes).
        auth_secret: Subscriber's auth secret (16 bytes).
        subscriber_public_key: Subscriber's public key (65 bytes).
        ephemeral_public_key: Sender's ephemeral public key (65 bytes).

    Returns:
        32-byte intermediate key.
    """
    prk = hkdf_extract(auth_secret, shared_secret)
    info = AUTH_INFO_PREFIX + subscriber_public_key + ephemeral_public_key
    return hkdf_expand(prk, info, AUTH_KEY_SIZE)


def derive_content_key(
    shared_secret: bytes,
    salt: bytes,
    auth_secret: bytes,
    subscriber_public_key: bytes,
    ephemeral_public_key: bytes,
) -> DerivedKeyMaterial:
    """Derive the content encryption key and nonce.

    Deterministic: identical inputs always yield identical output.

    Args:
        shared_secret: ECDH shared secret (32 bytes).
        salt: Per-message random salt (16 bytes).
        auth_secret: Subscriber's auth secret (16 bytes).
        subscriber_public_key: Subscriber's public key (65 bytes).
        ephemeral_public_key: Sender's ephemeral public key (65 bytes).

    Returns:
        DerivedKeyMaterial with a 16-byte key and a 12-byte nonce.
    """
    auth_key = derive_auth_key(
        shared_secret, auth_secret, subscriber_public_key, ephemeral_public_key
    )
    prk = hkdf_extract(salt, auth_key)

    return DerivedKeyMaterial(
        key=hkdf_expand(prk, CONTENT_KEY_INFO, CONTENT_KEY_SIZE),
        nonce=hkdf_expand(prk, NONCE_INFO, NONCE_SIZE),
    )
