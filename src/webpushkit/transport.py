"""
Transport interface for delivering push requests.

This module provides an abstract base class for sending built requests to
push services. Implementations can use any HTTP client.
"""

from abc import ABC, abstractmethod

from .models import PushRequest, PushResponse


class PushTransport(ABC):
    """Abstract base class for sending requests to a push service."""

    @abstractmethod
    async def send(self, request: PushRequest) -> PushResponse:
        """Send a request and return the push service's response."""
        pass

    async def close(self) -> None:
        """Release any resources held by the transport."""
        pass
