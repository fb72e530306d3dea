"""
VAPID authentication for Web Push.

This module builds the ES256 JSON Web Token a push service uses to identify
the application server, and formats the Authorization and Crypto-Key
headers that carry it. Keys travel as unpadded base64url: the public key as
a 65-byte uncompressed P-256 point, the private key as its 32-byte scalar.
"""

import binascii
import json
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import urlparse

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.hashes import SHA256

from .keys import (
    decode_key,
    generate_ephemeral_keypair,
    private_key_from_bytes,
    private_key_to_bytes,
    public_key_from_bytes,
    public_key_to_bytes,
    urlsafe_b64decode,
    urlsafe_b64encode,
)
from .types import (
    PUBLIC_KEY_SIZE,
    VAPID_DEFAULT_EXPIRATION,
    VAPID_MAX_EXPIRATION,
    VAPID_PRIVATE_KEY_SIZE,
    VAPID_SIGNATURE_SIZE,
    InvalidExpirationError,
    InvalidKeyError,
    InvalidSubjectError,
    SigningError,
    WebPushError,
)

logger = logging.getLogger(__name__)

JWT_HEADER = {"typ": "JWT", "alg": "ES256"}


class AuthScheme(Enum):
    """Authorization header scheme expected by the push service."""
    WEBPUSH = "WebPush"
    BEARER = "Bearer"


@dataclass(frozen=True)
class VapidDetails:
    """Application server identity used to sign VAPID tokens."""

    subject: str
    """A mailto: address or https: URL for the push service to contact."""

    public_key: str
    """Unpadded base64url uncompressed P-256 public key."""

    private_key: str
    """Unpadded base64url P-256 private scalar."""

    expiration: Optional[int] = None
    """Token expiry as Unix seconds (default: 12 hours from signing)."""

    def validate(self) -> None:
        """Check subject, keys and expiration; raises on the first problem."""
        validate_subject(self.subject)
        validate_public_key(self.public_key)
        validate_private_key(self.private_key)
        if self.expiration is not None:
            validate_expiration(self.expiration)

    @classmethod
    def from_env(cls, prefix: str = "VAPID_") -> "VapidDetails":
        """
        Read details from VAPID_SUBJECT, VAPID_PUBLIC_KEY, VAPID_PRIVATE_KEY
        and the optional VAPID_EXPIRATION environment variables.

        Raises:
            KeyError: If a required variable is not set
        """
        expiration = os.environ.get(f"{prefix}EXPIRATION")
        return cls(
            subject=os.environ[f"{prefix}SUBJECT"],
            public_key=os.environ[f"{prefix}PUBLIC_KEY"],
            private_key=os.environ[f"{prefix}PRIVATE_KEY"],
            expiration=int(expiration) if expiration else None,
        )


@dataclass(frozen=True)
class VapidHeaders:
    """Signed VAPID header values for one request."""
    token: str
    authorization: str
    crypto_key: str


def validate_subject(subject: str) -> None:
    """
    Check that a subject is a mailto: address or an absolute https: URL.

    Raises:
        InvalidSubjectError: If the subject has any other form
    """
    if not subject:
        raise InvalidSubjectError("Subject must be a non-empty mailto: or https: URI")

    if subject.startswith("mailto:"):
        if len(subject) == len("mailto:"):
            raise InvalidSubjectError("mailto: subject has no address")
        return

    parsed = urlparse(subject)
    if parsed.scheme != "https" or not parsed.netloc:
        raise InvalidSubjectError(
            f"Subject must start with 'mailto:' or be an https: URL, got {subject!r}"
        )


def validate_public_key(public_key: str) -> bytes:
    """
    Decode and check a base64url VAPID public key.

    Returns:
        The 65-byte uncompressed point

    Raises:
        InvalidKeyError: If the key is not a valid uncompressed P-256 point
    """
    if not public_key:
        raise InvalidKeyError("VAPID public key must be a non-empty base64url string")

    raw = decode_key(public_key, PUBLIC_KEY_SIZE, "VAPID public key")
    public_key_from_bytes(raw)
    return raw


def validate_private_key(private_key: str) -> bytes:
    """
    Decode and check a base64url VAPID private key.

    Returns:
        The 32-byte private scalar

    Raises:
        InvalidKeyError: If the key is not 32 bytes
    """
    if not private_key:
        raise InvalidKeyError("VAPID private key must be a non-empty base64url string")

    return decode_key(private_key, VAPID_PRIVATE_KEY_SIZE, "VAPID private key")


def validate_expiration(expiration: int, now: Optional[int] = None) -> None:
    """
    Check that an expiration lies in the future.

    Expirations beyond 24 hours are accepted; push services enforce the
    ceiling and may reject the token.

    Raises:
        InvalidExpirationError: If the expiration is not in the future
    """
    now = int(time.time()) if now is None else now
    if expiration <= now:
        raise InvalidExpirationError("VAPID expiration must be a Unix timestamp in the future")
    if expiration - now > VAPID_MAX_EXPIRATION:
        logger.warning(
            "VAPID expiration is %d seconds ahead; push services may reject more than %d",
            expiration - now,
            VAPID_MAX_EXPIRATION,
        )


def audience_from_endpoint(endpoint: str) -> str:
    """Return the scheme://host audience for a push endpoint URL."""
    parsed = urlparse(endpoint)
    return f"{parsed.scheme}://{parsed.hostname}"


def _encode_segment(value: dict) -> str:
    return urlsafe_b64encode(json.dumps(value, separators=(",", ":")).encode("utf-8"))


def sign_es256(signing_input: bytes, private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """
    Sign with ECDSA P-256/SHA-256 and return the 64-byte r || s form.

    Raises:
        SigningError: If the primitive layer rejects the operation
    """
    try:
        der = private_key.sign(signing_input, ec.ECDSA(SHA256()))
    except ValueError as e:
        raise SigningError(f"ES256 signing failed: {e}") from e

    r, s = decode_dss_signature(der)
    return r.to_bytes(32, "big") + s.to_bytes(32, "big")


def create_jwt(
    audience: str,
    subject: str,
    private_key: str,
    expiration: Optional[int] = None,
) -> str:
    """
    Build and sign a VAPID JSON Web Token.

    Args:
        audience: Push service origin (scheme://host)
        subject: mailto: address or https: URL
        private_key: Unpadded base64url P-256 private scalar
        expiration: Unix expiry (default: now + 12 hours)

    Returns:
        Compact JWT: three unpadded base64url segments joined by '.'

    Raises:
        InvalidSubjectError: If the subject is not mailto: or https:
        InvalidKeyError: If the private key is malformed
        SigningError: If signing fails
    """
    validate_subject(subject)
    signing_key = private_key_from_bytes(validate_private_key(private_key))

    if expiration is None:
        expiration = int(time.time()) + VAPID_DEFAULT_EXPIRATION
    else:
        validate_expiration(expiration)

    claims = {"aud": audience, "exp": expiration, "sub": subject}
    signing_input = f"{_encode_segment(JWT_HEADER)}.{_encode_segment(claims)}"

    signature = sign_es256(signing_input.encode("ascii"), signing_key)
    return f"{signing_input}.{urlsafe_b64encode(signature)}"


def get_vapid_headers(
    audience: str,
    subject: str,
    public_key: str,
    private_key: str,
    expiration: Optional[int] = None,
    scheme: AuthScheme = AuthScheme.WEBPUSH,
) -> VapidHeaders:
    """
    Sign a VAPID token and format the Authorization and Crypto-Key values.

    The Crypto-Key value holds only the p256ecdsa= entry; callers join it to
    a payload's dh= entry with ';'.

    Raises:
        InvalidSubjectError: If the subject is not mailto: or https:
        InvalidKeyError: If either key is malformed
        SigningError: If signing fails
        WebPushError: If the audience is empty
    """
    if not audience:
        raise WebPushError("Audience must be the scheme://host of the push endpoint")

    validate_subject(subject)
    validate_public_key(public_key)
    token = create_jwt(audience, subject, private_key, expiration)

    return VapidHeaders(
        token=token,
        authorization=f"{scheme.value} {token}",
        crypto_key=f"p256ecdsa={urlsafe_b64encode(urlsafe_b64decode(public_key))}",
    )


def decode_jwt_claims(token: str) -> dict:
    """
    Decode a token's claims without verifying it.

    Raises:
        ValueError: If the token is not a three-segment JWT
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise ValueError(f"JWT must have 3 segments, got {len(segments)}")
    return json.loads(urlsafe_b64decode(segments[1]))


def verify_jwt(token: str, public_key: str) -> bool:
    """
    Verify a VAPID token's ES256 signature against a base64url public key.

    Returns:
        True if the signature is valid, False otherwise

    Raises:
        InvalidKeyError: If the public key is malformed
    """
    verifying_key = public_key_from_bytes(validate_public_key(public_key))

    segments = token.split(".")
    if len(segments) != 3:
        return False

    try:
        signature = urlsafe_b64decode(segments[2])
        signing_input = f"{segments[0]}.{segments[1]}".encode("ascii")
    except (ValueError, binascii.Error):
        return False

    if len(signature) != VAPID_SIGNATURE_SIZE:
        return False

    der = encode_dss_signature(
        int.from_bytes(signature[:32], "big"),
        int.from_bytes(signature[32:], "big"),
    )

    try:
        verifying_key.verify(der, signing_input, ec.ECDSA(SHA256()))
        return True
    except InvalidSignature:
        return False


def generate_vapid_keys() -> Tuple[str, str]:
    """
    Generate a new VAPID key pair.

    Returns:
        Tuple of (public_key, private_key) as unpadded base64url
    """
    private_key, public_key = generate_ephemeral_keypair()
    return (
        urlsafe_b64encode(public_key_to_bytes(public_key)),
        urlsafe_b64encode(private_key_to_bytes(private_key)),
    )
