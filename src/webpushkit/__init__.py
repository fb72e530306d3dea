"""
webpushkit - Encrypted Web Push notifications

Python implementation of Web Push payload encryption (P-256 ECDH + HKDF +
AES-128-GCM) and VAPID ES256 authentication.
"""

from .keys import (
    generate_ephemeral_keypair,
    compute_shared_secret,
    public_key_to_bytes,
    public_key_from_bytes,
    urlsafe_b64encode,
    urlsafe_b64decode,
)
from .derivation import DerivedKeyMaterial, derive_content_key
from .envelope import EncryptionResult
from .crypto import encrypt_payload, decrypt_payload, decrypt_record
from .vapid import (
    AuthScheme,
    VapidDetails,
    VapidHeaders,
    validate_subject,
    validate_public_key,
    validate_private_key,
    create_jwt,
    get_vapid_headers,
    verify_jwt,
    generate_vapid_keys,
)
from .models import PushSubscription, SendOptions, PushRequest, PushResponse
from .transport import PushTransport
from .client import WebPushClient, PushServiceError, handle_response
from .types import (
    DEFAULT_TTL,
    WebPushError,
    InvalidKeyError,
    InvalidSubjectError,
    InvalidExpirationError,
    EncryptionError,
    DecryptionError,
    SigningError,
    InvalidSubscriptionError,
    InvalidOptionsError,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "generate_ephemeral_keypair",
    "compute_shared_secret",
    "public_key_to_bytes",
    "public_key_from_bytes",
    "urlsafe_b64encode",
    "urlsafe_b64decode",
    # Derivation
    "DerivedKeyMaterial",
    "derive_content_key",
    # Crypto
    "EncryptionResult",
    "encrypt_payload",
    "decrypt_payload",
    "decrypt_record",
    # VAPID
    "AuthScheme",
    "VapidDetails",
    "VapidHeaders",
    "validate_subject",
    "validate_public_key",
    "validate_private_key",
    "create_jwt",
    "get_vapid_headers",
    "verify_jwt",
    "generate_vapid_keys",
    # Models
    "PushSubscription",
    "SendOptions",
    "PushRequest",
    "PushResponse",
    # Client
    "PushTransport",
    "WebPushClient",
    "PushServiceError",
    "handle_response",
    # Errors
    "WebPushError",
    "InvalidKeyError",
    "InvalidSubjectError",
    "InvalidExpirationError",
    "EncryptionError",
    "DecryptionError",
    "SigningError",
    "InvalidSubscriptionError",
    "InvalidOptionsError",
    # Constants
    "DEFAULT_TTL",
]
