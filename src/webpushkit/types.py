"""Type definitions and constants for Web Push encryption."""

# Subscriber key material
PUBLIC_KEY_SIZE = 65  # uncompressed P-256 point, 0x04 || X || Y
AUTH_SECRET_SIZE = 16
SHARED_SECRET_SIZE = 32

# Envelope constants
SALT_SIZE = 16
CONTENT_KEY_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
PADDING_LENGTH_SIZE = 2
CONTENT_ENCODING = "aesgcm"

# Key derivation info strings
AUTH_INFO_PREFIX = b"WebPush: info\x00"
CONTENT_KEY_INFO = b"Content-Encoding: aesgcm\x00"
NONCE_INFO = b"Content-Encoding: nonce\x00"
AUTH_KEY_SIZE = 32

# VAPID constants
VAPID_PRIVATE_KEY_SIZE = 32
VAPID_SIGNATURE_SIZE = 64
VAPID_DEFAULT_EXPIRATION = 12 * 60 * 60
VAPID_MAX_EXPIRATION = 24 * 60 * 60

# Request constants
DEFAULT_TTL = 2419200  # 4 weeks
GCM_ENDPOINT_PREFIX = "https://android.googleapis.com/gcm/send"
FCM_ENDPOINT_PREFIX = "https://fcm.googleapis.com/fcm/send/"


# Exception types
class WebPushError(Exception):
    """Base exception for Web Push errors."""
    pass


class InvalidKeyError(WebPushError):
    """Malformed or wrong-length key material."""
    pass


class InvalidSubjectError(WebPushError):
    """VAPID subject is not a mailto: or https: URI."""
    pass


class InvalidExpirationError(WebPushError):
    """VAPID expiration is not in the future."""
    pass


class EncryptionError(WebPushError):
    """Payload encryption failed."""
    pass


class DecryptionError(WebPushError):
    """Payload decryption or authentication failed."""
    pass


class SigningError(WebPushError):
    """VAPID token signing failed."""
    pass


class InvalidSubscriptionError(WebPushError):
    """Subscription is missing an endpoint or the keys a payload needs."""
    pass


class InvalidOptionsError(WebPushError):
    """Send options have an invalid value."""
    pass
