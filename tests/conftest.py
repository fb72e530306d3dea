"""Shared fixtures for Web Push tests."""

import pytest

from webpushkit.keys import (
    private_key_from_bytes,
    public_key_to_bytes,
    urlsafe_b64decode,
)
from webpushkit.vapid import generate_vapid_keys

from .test_vectors import SUBSCRIBER_PRIVATE_KEY_B64


@pytest.fixture
def subscriber_private_key():
    """The subscriber's P-256 private key."""
    return private_key_from_bytes(urlsafe_b64decode(SUBSCRIBER_PRIVATE_KEY_B64))


@pytest.fixture
def subscriber_public_key(subscriber_private_key) -> bytes:
    """The subscriber's 65-byte p256dh key."""
    return public_key_to_bytes(subscriber_private_key.public_key())


@pytest.fixture
def vapid_keys():
    """A fresh VAPID key pair as (public, private) base64url strings."""
    return generate_vapid_keys()
