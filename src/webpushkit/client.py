"""
Web Push client for building and sending encrypted notifications.

The WebPushClient holds default credentials (a VAPID identity and an
optional legacy GCM key), builds requests with encrypted payloads and
signed headers, and hands them to a PushTransport.
"""

import asyncio
import dataclasses
import logging
from typing import Optional, Union
from urllib.parse import urlparse

from .crypto import encrypt_payload
from .models import PushRequest, PushResponse, PushSubscription, SendOptions
from .transport import PushTransport
from .types import (
    CONTENT_ENCODING,
    FCM_ENDPOINT_PREFIX,
    GCM_ENDPOINT_PREFIX,
    InvalidKeyError,
    InvalidOptionsError,
    InvalidSubscriptionError,
    WebPushError,
)
from .vapid import VapidDetails, audience_from_endpoint, get_vapid_headers

logger = logging.getLogger(__name__)


class PushServiceError(WebPushError):
    """Raised when a push service rejects a notification."""

    def __init__(
        self,
        message: str,
        subscription: PushSubscription,
        response: PushResponse,
    ) -> None:
        self.subscription = subscription
        self.response = response
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def is_subscription_gone(self) -> bool:
        """Whether the subscription expired and should be deleted (404/410)."""
        return self.status_code in (404, 410)

    @property
    def should_back_off(self) -> bool:
        """Whether the sender is being rate limited (429)."""
        return self.status_code == 429


_STATUS_MESSAGES = {
    400: "Bad Request",
    404: "Subscription no longer valid",
    410: "Subscription no longer valid",
    413: "Payload too large",
    429: "Too many requests",
}


class WebPushClient:
    """
    Client for sending Web Push notifications.

    Defaults set on the client are validated once when set and read on
    every call; per-call SendOptions override them without mutating the
    client.

    Example usage:
        ```python
        client = WebPushClient(transport=my_transport)
        client.set_vapid_details(
            "mailto:ops@example.com", public_key, private_key
        )

        subscription = PushSubscription.from_dict(browser_json)
        await client.send_notification(subscription, "Hello")
        ```
    """

    def __init__(
        self,
        transport: Optional[PushTransport] = None,
        vapid_details: Optional[VapidDetails] = None,
        gcm_api_key: Optional[str] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            transport: Transport used by send_notification.
            vapid_details: Default VAPID identity.
            gcm_api_key: Default legacy GCM/FCM server key.
        """
        self.transport = transport
        self._vapid_details: Optional[VapidDetails] = None
        self._gcm_api_key: Optional[str] = None

        if vapid_details is not None:
            self.set_vapid_details(vapid_details)
        self.set_gcm_api_key(gcm_api_key)

    @property
    def vapid_details(self) -> Optional[VapidDetails]:
        return self._vapid_details

    @property
    def gcm_api_key(self) -> Optional[str]:
        return self._gcm_api_key

    def set_gcm_api_key(self, gcm_api_key: Optional[str]) -> None:
        """
        Set the key sent to legacy GCM endpoints, or None to clear it.

        Raises:
            InvalidOptionsError: If the key is an empty string
        """
        if gcm_api_key is not None and not gcm_api_key:
            raise InvalidOptionsError("The GCM API key should be a non-empty string or None")
        self._gcm_api_key = gcm_api_key

    def set_vapid_details(
        self,
        subject: Union[VapidDetails, str],
        public_key: Optional[str] = None,
        private_key: Optional[str] = None,
    ) -> None:
        """
        Set the default VAPID identity.

        Accepts either a VapidDetails or subject, public key and private key.

        Raises:
            InvalidSubjectError: If the subject is not mailto: or https:
            InvalidKeyError: If either key is malformed
        """
        if isinstance(subject, VapidDetails):
            details = subject
        else:
            if public_key is None or private_key is None:
                raise InvalidKeyError("Both VAPID public and private keys are required")
            details = VapidDetails(subject=subject, public_key=public_key, private_key=private_key)

        details.validate()
        self._vapid_details = details

    def _resolve_options(self, options: Optional[SendOptions]) -> SendOptions:
        """Merge per-call options over the client defaults into a new SendOptions."""
        options = options or SendOptions()
        options.validate()

        if options.vapid_details is not None:
            options.vapid_details.validate()

        return dataclasses.replace(
            options,
            headers=dict(options.headers),
            gcm_api_key=options.gcm_api_key or self._gcm_api_key,
            vapid_details=options.vapid_details or self._vapid_details,
        )

    def generate_request_details(
        self,
        subscription: PushSubscription,
        payload: Optional[Union[bytes, str]] = None,
        options: Optional[SendOptions] = None,
    ) -> PushRequest:
        """
        Build the request for a notification without sending it.

        Args:
            subscription: Target subscription.
            payload: Optional payload; empty or None sends a tickle.
            options: Per-call overrides.

        Returns:
            PushRequest with headers and encrypted body.

        Raises:
            InvalidSubscriptionError: If the endpoint is not an absolute URL, or a
                payload is given for a subscription without keys.
            InvalidOptionsError: If an option value is invalid.
            InvalidKeyError, InvalidSubjectError, EncryptionError, SigningError:
                From the encryption and signing steps.
        """
        endpoint = subscription.endpoint
        parsed = urlparse(endpoint or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidSubscriptionError(
                "You must pass in a subscription with at least a valid endpoint"
            )

        if payload and not subscription.has_keys():
            raise InvalidSubscriptionError(
                "To send a message with a payload, the subscription must have 'auth' and 'p256dh' keys"
            )

        resolved = self._resolve_options(options)

        headers = {"TTL": str(resolved.ttl)}
        headers.update(resolved.headers)

        crypto_key: Optional[str] = None
        body = b""

        if payload:
            encrypted = encrypt_payload(payload, subscription.p256dh, subscription.auth)
            body = encrypted.ciphertext
            headers["Content-Type"] = "application/octet-stream"
            headers["Content-Encoding"] = CONTENT_ENCODING
            headers["Encryption"] = encrypted.encryption_header()
            crypto_key = encrypted.crypto_key_header()

        headers["Content-Length"] = str(len(body))

        is_gcm = endpoint.startswith(GCM_ENDPOINT_PREFIX)
        is_fcm = endpoint.startswith(FCM_ENDPOINT_PREFIX)

        if is_gcm:
            if resolved.gcm_api_key:
                headers["Authorization"] = f"key={resolved.gcm_api_key}"
        elif resolved.vapid_details is not None:
            details = resolved.vapid_details
            vapid_headers = get_vapid_headers(
                audience_from_endpoint(endpoint),
                details.subject,
                details.public_key,
                details.private_key,
                details.expiration,
                scheme=resolved.auth_scheme,
            )
            headers["Authorization"] = vapid_headers.authorization
            if crypto_key:
                crypto_key = f"{crypto_key};{vapid_headers.crypto_key}"
            else:
                crypto_key = vapid_headers.crypto_key
        elif is_fcm and resolved.gcm_api_key:
            headers["Authorization"] = f"key={resolved.gcm_api_key}"

        if crypto_key:
            headers["Crypto-Key"] = crypto_key

        return PushRequest(endpoint=endpoint, headers=headers, body=body)

    async def send_notification(
        self,
        subscription: PushSubscription,
        payload: Optional[Union[bytes, str]] = None,
        options: Optional[SendOptions] = None,
    ) -> PushResponse:
        """
        Build a notification and send it through the transport.

        Returns:
            The successful PushResponse.

        Raises:
            PushServiceError: If the push service returns a non-2xx status.
            WebPushError: If no transport is configured, or building fails.
        """
        if self.transport is None:
            raise WebPushError("No transport configured for sending notifications")

        request = self.generate_request_details(subscription, payload, options)
        response = await self.transport.send(request)
        handle_response(response, subscription)

        logger.debug(
            "Push delivered to %s (HTTP %d)",
            audience_from_endpoint(request.endpoint),
            response.status_code,
        )
        return response

    def send_notification_sync(
        self,
        subscription: PushSubscription,
        payload: Optional[Union[bytes, str]] = None,
        options: Optional[SendOptions] = None,
    ) -> PushResponse:
        """
        Blocking form of send_notification for callers without an event loop.

        Must not be called from inside a running event loop.
        """
        return asyncio.run(self.send_notification(subscription, payload, options))

    async def close(self) -> None:
        """Close the transport."""
        if self.transport is not None:
            await self.transport.close()

    async def __aenter__(self) -> "WebPushClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def handle_response(response: PushResponse, subscription: PushSubscription) -> None:
    """
    Raise PushServiceError for any non-2xx response.

    404 and 410 mean the subscription expired and should be deleted, 429
    means back off, and 400/413 carry the service's explanation in the body.
    """
    if response.is_success:
        return

    message = _STATUS_MESSAGES.get(
        response.status_code,
        f"Received unexpected response code: {response.status_code}",
    )
    if response.body:
        message = f"{message}. Details: {response.body}"

    if response.status_code in (404, 410):
        logger.warning("Subscription expired (HTTP %d)", response.status_code)
    else:
        logger.error("Push service rejected notification: %s", message)

    raise PushServiceError(message, subscription, response)
