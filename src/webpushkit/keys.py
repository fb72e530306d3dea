"""Key agreement and key encoding for Web Push."""

import base64
import binascii
from typing import Tuple, Union

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .types import PUBLIC_KEY_SIZE, InvalidKeyError

KeyInput = Union[bytes, str]


def urlsafe_b64encode(data: bytes) -> str:
    """Encode bytes as URL-safe base64 without '=' padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def urlsafe_b64decode(text: str) -> bytes:
    """
    Decode URL-safe base64, with or without '=' padding.

    Standard base64 characters ('+' and '/') are accepted as well, since
    browsers and key generators are not consistent about the alphabet.

    Raises:
        ValueError: If the text is not valid base64
    """
    text = text.strip().replace("+", "-").replace("/", "_").rstrip("=")
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def decode_key(value: KeyInput, expected_size: int, name: str) -> bytes:
    """
    Return raw key bytes from bytes or a base64url string, checking the length.

    Raises:
        InvalidKeyError: If decoding fails or the length is wrong
    """
    if isinstance(value, str):
        try:
            value = urlsafe_b64decode(value)
        except (ValueError, binascii.Error) as e:
            raise InvalidKeyError(f"{name} is not valid base64url: {e}") from e

    if len(value) != expected_size:
        raise InvalidKeyError(f"{name} must be {expected_size} bytes, got {len(value)}")

    return bytes(value)


def generate_ephemeral_keypair() -> Tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    """
    Generate a fresh P-256 key pair for a single encryption.

    Returns:
        Tuple of (private_key, public_key)
    """
    private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key, private_key.public_key()


def public_key_to_bytes(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Convert a P-256 public key to its 65-byte uncompressed point."""
    return public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)


def public_key_from_bytes(data: bytes) -> ec.EllipticCurvePublicKey:
    """
    Create a P-256 public key from a 65-byte uncompressed point.

    Raises:
        InvalidKeyError: If the data is not an uncompressed point on P-256
    """
    if len(data) != PUBLIC_KEY_SIZE:
        raise InvalidKeyError(f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(data)}")
    if data[0] != 0x04:
        raise InvalidKeyError("Public key must be an uncompressed point (leading 0x04)")

    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), data)
    except ValueError as e:
        raise InvalidKeyError(f"Public key is not a point on P-256: {e}") from e


def ecdh_shared_secret(
    private_key: ec.EllipticCurvePrivateKey,
    public_key: ec.EllipticCurvePublicKey,
) -> bytes:
    """
    Perform P-256 ECDH.

    Returns:
        32-byte shared secret (X coordinate of the shared point)
    """
    return private_key.exchange(ec.ECDH(), public_key)


def compute_shared_secret(subscriber_public_key: bytes) -> Tuple[bytes, bytes]:
    """
    Agree on a shared secret with a subscriber using a fresh ephemeral key.

    The ephemeral private key is dropped before returning.

    Args:
        subscriber_public_key: Subscriber's 65-byte uncompressed P-256 key

    Returns:
        Tuple of (shared_secret, ephemeral_public_key_bytes)

    Raises:
        InvalidKeyError: If the subscriber key is not a valid P-256 point
    """
    peer_key = public_key_from_bytes(subscriber_public_key)

    ephemeral_private, ephemeral_public = generate_ephemeral_keypair()
    shared_secret = ecdh_shared_secret(ephemeral_private, peer_key)
    del ephemeral_private

    return shared_secret, public_key_to_bytes(ephemeral_public)


def private_key_from_bytes(data: bytes) -> ec.EllipticCurvePrivateKey:
    """
    Create a P-256 private key from its 32-byte big-endian scalar.

    Raises:
        InvalidKeyError: If the scalar is out of range for P-256
    """
    if len(data) != 32:
        raise InvalidKeyError(f"Private key must be 32 bytes, got {len(data)}")

    try:
        return ec.derive_private_key(int.from_bytes(data, "big"), ec.SECP256R1())
    except ValueError as e:
        raise InvalidKeyError(f"Invalid P-256 private key: {e}") from e


def private_key_to_bytes(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """Convert a P-256 private key to its 32-byte big-endian scalar."""
    return private_key.private_numbers().private_value.to_bytes(32, "big")
