"""Controller REST client with OAuth2 password login.

Holds one bearer token per client. On a 401 the client tries the
refresh token once and replays the request.
"""

import logging

import httpx

from slemon.controller.base import BaseControllerClient, ControllerError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/oauth2/token"
REFRESH_PATH = "/v1/oauth2/refreshToken"


class ControllerClient(BaseControllerClient):
    """httpx-backed client for the controller management API."""

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
        verify_tls: bool = True,
        timeout: float = 6.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.access_token: str | None = token
        self.refresh_token: str | None = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            verify=verify_tls,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    async def login(self) -> None:
        """Exchange username/password for access and refresh tokens."""
        if not self.username or not self.password:
            raise ControllerError("Controller credentials not configured")

        resp = await self._client.post(
            TOKEN_PATH,
            json={
                "grantType": "password",
                "userId": self.username,
                "password": self.password,
            },
        )
        if not resp.is_success:
            raise ControllerError(f"Authentication failed (HTTP {resp.status_code})")

        body = resp.json()
        self.access_token = body.get("access_token")
        self.refresh_token = body.get("refresh_token")
        if not self.access_token:
            raise ControllerError("Authentication response carried no access token")
        logger.info("Logged in to controller %s", self.base_url)

    async def logout(self) -> None:
        """Revoke the current token (best effort) and forget it."""
        token = self.access_token
        self.access_token = None
        self.refresh_token = None
        if not token:
            return
        try:
            await self._client.delete(
                f"{TOKEN_PATH}/{token}",
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Token revocation failed: %s", e)

    async def _refresh(self) -> bool:
        if not self.refresh_token:
            return False
        try:
            resp = await self._client.post(
                REFRESH_PATH,
                json={"grantType": "refresh_token", "refreshToken": self.refresh_token},
            )
        except httpx.HTTPError as e:
            logger.warning("Token refresh failed: %s", e)
            return False
        if not resp.is_success:
            logger.warning("Token refresh rejected (HTTP %d)", resp.status_code)
            return False
        body = resp.json()
        self.access_token = body.get("access_token") or None
        self.refresh_token = body.get("refresh_token", self.refresh_token)
        return self.access_token is not None

    async def make_authenticated_request(
        self, path: str, method: str = "GET", **kwargs: object
    ) -> httpx.Response:
        if not self.access_token:
            raise ControllerError("No access token available")

        resp = await self._send(method, path, **kwargs)
        if resp.status_code == 401 and await self._refresh():
            logger.info("Access token refreshed, retrying %s %s", method, path)
            resp = await self._send(method, path, **kwargs)
        return resp

    async def _send(self, method: str, path: str, **kwargs: object) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})  # type: ignore[call-overload]
        headers["Authorization"] = f"Bearer {self.access_token}"
        return await self._client.request(method, path, headers=headers, **kwargs)  # type: ignore[arg-type]

    async def aclose(self) -> None:
        await self._client.aclose()
