"""Models for push subscriptions, send options and requests."""

from dataclasses import dataclass, field
from typing import Optional

from .types import DEFAULT_TTL, InvalidOptionsError
from .vapid import AuthScheme, VapidDetails


@dataclass(frozen=True)
class PushSubscription:
    """A browser push subscription."""
    endpoint: str
    p256dh: Optional[str] = None
    auth: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PushSubscription":
        """Creates a subscription from the browser's PushSubscription JSON."""
        keys = data.get("keys") or {}
        return cls(
            endpoint=data.get("endpoint", ""),
            p256dh=keys.get("p256dh"),
            auth=keys.get("auth"),
        )

    def has_keys(self) -> bool:
        """Whether the subscription can receive an encrypted payload."""
        return bool(self.p256dh) and bool(self.auth)


@dataclass
class SendOptions:
    """Per-notification overrides for the client defaults."""

    ttl: int = DEFAULT_TTL
    """Seconds the push service should retain an undelivered message."""

    headers: dict[str, str] = field(default_factory=dict)
    """Extra request headers."""

    gcm_api_key: Optional[str] = None
    """Overrides the client's GCM/FCM server key."""

    vapid_details: Optional[VapidDetails] = None
    """Overrides the client's VAPID details."""

    auth_scheme: AuthScheme = AuthScheme.WEBPUSH
    """Prefix used for the VAPID Authorization header."""

    def validate(self) -> None:
        """Check option values; raises InvalidOptionsError on the first problem."""
        if isinstance(self.ttl, bool) or not isinstance(self.ttl, int) or self.ttl < 0:
            raise InvalidOptionsError(f"TTL must be a non-negative integer, got {self.ttl!r}")
        if self.gcm_api_key is not None and not self.gcm_api_key:
            raise InvalidOptionsError("GCM API key must be a non-empty string or None")
        for name, value in self.headers.items():
            if not name or not isinstance(value, str):
                raise InvalidOptionsError(f"Header {name!r} must have a string value")


@dataclass(frozen=True)
class PushRequest:
    """A fully built request, ready for a transport to send."""
    endpoint: str
    headers: dict[str, str]
    body: bytes = b""
    method: str = "POST"


@dataclass(frozen=True)
class PushResponse:
    """The push service's reply."""
    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """Whether the status code is 2xx."""
        return 200 <= self.status_code < 300
