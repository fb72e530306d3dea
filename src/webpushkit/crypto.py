"""Payload encryption and decryption for Web Push messages."""

import logging
import os
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .derivation import derive_content_key
from .envelope import EncryptionResult
from .keys import (
    KeyInput,
    compute_shared_secret,
    decode_key,
    ecdh_shared_secret,
    public_key_from_bytes,
    public_key_to_bytes,
)
from .types import (
    AUTH_SECRET_SIZE,
    PADDING_LENGTH_SIZE,
    PUBLIC_KEY_SIZE,
    SALT_SIZE,
    DecryptionError,
    EncryptionError,
)

logger = logging.getLogger(__name__)


def pad_plaintext(plaintext: bytes) -> bytes:
    """Prefix the plaintext with a zero 2-byte big-endian padding length."""
    return (0).to_bytes(PADDING_LENGTH_SIZE, "big") + plaintext


def unpad_record(record: bytes) -> bytes:
    """
    Strip the padding length field and padding from a decrypted record.

    Raises:
        DecryptionError: If the padding field is inconsistent
    """
    if len(record) < PADDING_LENGTH_SIZE:
        raise DecryptionError(f"Record too short: {len(record)} bytes")

    pad_length = int.from_bytes(record[:PADDING_LENGTH_SIZE], "big")
    end = PADDING_LENGTH_SIZE + pad_length
    if len(record) < end:
        raise DecryptionError(f"Padding length {pad_length} exceeds record size")
    if any(record[PADDING_LENGTH_SIZE:end]):
        raise DecryptionError("Padding bytes must be zero")

    return record[end:]


def encrypt_payload(
    plaintext: Union[bytes, str],
    subscriber_public_key: KeyInput,
    auth_secret: KeyInput,
) -> EncryptionResult:
    """
    Encrypt a push payload for a subscriber.

    Args:
        plaintext: Payload to encrypt (str is UTF-8 encoded)
        subscriber_public_key: Subscriber's p256dh key (65 bytes or base64url)
        auth_secret: Subscriber's auth secret (16 bytes or base64url)

    Returns:
        EncryptionResult with ciphertext, salt and ephemeral public key

    Raises:
        InvalidKeyError: If either key is malformed
        EncryptionError: If the payload is empty or AES-GCM rejects it
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")

    if not plaintext:
        raise EncryptionError("Cannot encrypt an empty payload")

    subscriber_key = decode_key(subscriber_public_key, PUBLIC_KEY_SIZE, "Subscriber public key")
    auth = decode_key(auth_secret, AUTH_SECRET_SIZE, "Auth secret")

    salt = os.urandom(SALT_SIZE)
    shared_secret, local_public_key = compute_shared_secret(subscriber_key)
    material = derive_content_key(shared_secret, salt, auth, subscriber_key, local_public_key)
    del shared_secret

    try:
        ciphertext = AESGCM(material.key).encrypt(material.nonce, pad_plaintext(plaintext), None)
    except (ValueError, OverflowError) as e:
        raise EncryptionError(f"AES-GCM encryption failed: {e}") from e
    finally:
        del material

    logger.debug("Encrypted %d byte payload into %d byte record", len(plaintext), len(ciphertext))

    return EncryptionResult(
        ciphertext=ciphertext,
        salt=salt,
        local_public_key=local_public_key,
    )


def decrypt_record(
    ciphertext: bytes,
    salt: bytes,
    local_public_key: bytes,
    subscriber_private_key: ec.EllipticCurvePrivateKey,
    auth_secret: KeyInput,
) -> bytes:
    """
    Decrypt a record as the receiving browser would, keeping the padding prefix.

    Args:
        ciphertext: Encrypted record with appended tag
        salt: Salt from the Encryption header (16 bytes)
        local_public_key: Sender's ephemeral key from the Crypto-Key header
        subscriber_private_key: The subscriber's P-256 private key
        auth_secret: Subscriber's auth secret

    Returns:
        The padded record (2-byte padding length, padding, plaintext)

    Raises:
        InvalidKeyError: If a key is malformed
        DecryptionError: If authentication fails
    """
    auth = decode_key(auth_secret, AUTH_SECRET_SIZE, "Auth secret")
    if len(salt) != SALT_SIZE:
        raise DecryptionError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")

    sender_key = public_key_from_bytes(local_public_key)
    subscriber_key = public_key_to_bytes(subscriber_private_key.public_key())

    shared_secret = ecdh_shared_secret(subscriber_private_key, sender_key)
    material = derive_content_key(shared_secret, salt, auth, subscriber_key, local_public_key)

    try:
        return AESGCM(material.key).decrypt(material.nonce, ciphertext, None)
    except InvalidTag as e:
        raise DecryptionError("Authentication tag mismatch") from e


def decrypt_payload(
    result: EncryptionResult,
    subscriber_private_key: ec.EllipticCurvePrivateKey,
    auth_secret: KeyInput,
) -> bytes:
    """Decrypt an EncryptionResult and strip its padding."""
    record = decrypt_record(
        result.ciphertext,
        result.salt,
        result.local_public_key,
        subscriber_private_key,
        auth_secret,
    )
    return unpad_record(record)
