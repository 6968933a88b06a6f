"""Base interface for controller API clients."""

from abc import ABC, abstractmethod

import httpx


class ControllerError(Exception):
    """Raised when the controller rejects authentication."""


class BaseControllerClient(ABC):
    """What the collector needs from a controller API client."""

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Whether a session token is currently held."""

    @abstractmethod
    async def make_authenticated_request(
        self, path: str, method: str = "GET", **kwargs: object
    ) -> httpx.Response:
        """Send a request with the session token attached."""
