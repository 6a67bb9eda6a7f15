# Auth Client: HTTP calls to the device-authorization server.
# Created: 2026-09-03
#
# Endpoints (relative to the server URL):
#   POST /api/auth/device/code    {client_id, scope}
#   POST /api/auth/device/token   {grant_type, device_code, client_id}
#   GET  /api/auth/get-session    Authorization: Bearer <access_token>

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from codev import __version__
from codev.errors import AuthServerError

logger = logging.getLogger(__name__)

DEVICE_CODE_PATH = "/api/auth/device/code"
DEVICE_TOKEN_PATH = "/api/auth/device/token"
SESSION_PATH = "/api/auth/get-session"
DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
USER_AGENT = f"codev-cli/{__version__}"


@dataclass
class TokenPollResponse:
    """One answer from the token endpoint: either a token payload or an error code."""

    token: dict[str, Any] | None = None
    error: str | None = None
    error_description: str = ""


@dataclass
class SessionUser:
    """The user behind an access token, as reported by the auth server."""

    id: str
    name: str = ""
    email: str = ""
    image: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.email or self.name or self.id


class AuthClient:
    """Thin async wrapper around the auth server's device-flow endpoints.

    Usage:
        async with AuthClient("http://localhost:3005") as auth:
            data = await auth.request_device_code("client-id", "openid profile email")
    """

    def __init__(
        self,
        server_url: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.server_url,
            timeout=timeout,
            transport=transport,
            headers={"user-agent": USER_AGENT},
        )

    async def __aenter__(self) -> AuthClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request_device_code(self, client_id: str, scope: str) -> dict[str, Any]:
        """Ask the server for a device code + user code.

        Raises:
            AuthServerError: on a non-2xx response or a transport failure.
        """
        try:
            resp = await self._client.post(
                DEVICE_CODE_PATH, json={"client_id": client_id, "scope": scope}
            )
        except httpx.HTTPError as e:
            raise AuthServerError(f"Could not reach auth server at {self.server_url}: {e}") from e

        if resp.is_error:
            body = _json_or_empty(resp)
            description = body.get("error_description") or body.get("message") or "Unknown error"
            logger.error("Device code request failed (%s): %s", resp.status_code, description)
            raise AuthServerError(
                f"Failed to request device authorization: {description}",
                status_code=resp.status_code,
            )
        return resp.json()

    async def request_token(self, device_code: str, client_id: str) -> TokenPollResponse:
        """Poll the token endpoint once.

        OAuth error answers (``authorization_pending`` etc.) are returned, not
        raised. Transport failures propagate as ``httpx.HTTPError``.
        """
        resp = await self._client.post(
            DEVICE_TOKEN_PATH,
            json={
                "grant_type": DEVICE_CODE_GRANT_TYPE,
                "device_code": device_code,
                "client_id": client_id,
            },
        )
        body = _json_or_empty(resp)

        if not resp.is_error and body.get("access_token"):
            return TokenPollResponse(token=body)

        error = body.get("error")
        if not error:
            error = "server_error" if resp.is_error else "invalid_response"
        return TokenPollResponse(
            error=error,
            error_description=body.get("error_description") or body.get("message") or "",
        )

    async def get_session(self, access_token: str) -> SessionUser | None:
        """Resolve an access token to its user. Returns None if the session is unknown."""
        resp = await self._client.get(
            SESSION_PATH, headers={"Authorization": f"Bearer {access_token}"}
        )
        if resp.status_code == 401:
            return None
        resp.raise_for_status()

        body = _json_or_empty(resp)
        user = body.get("user") if body else None
        if not user or not user.get("id"):
            return None
        return SessionUser(
            id=str(user["id"]),
            name=user.get("name") or "",
            email=user.get("email") or "",
            image=user.get("image"),
            extra={k: v for k, v in user.items() if k not in ("id", "name", "email", "image")},
        )


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
