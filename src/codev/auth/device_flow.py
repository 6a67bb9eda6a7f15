"""OAuth 2.0 device authorization grant (RFC 8628) poller.

Created: 2026-09-04

Flow:
    REQUESTING -> AWAITING_APPROVAL -> APPROVED
                                    -> DENIED   (access_denied)
                                    -> EXPIRED  (expired_token / local deadline)
                                    -> FAILED   (other error, transport failure)

Polling is wait -> call -> wait -> call: the next attempt is scheduled
``interval`` seconds after the previous one completes. ``slow_down`` adds
``SLOW_DOWN_INCREMENT`` seconds to the interval; there is no attempt cap and
no other backoff.

Terminal failures raise a ``DeviceFlowError`` subclass. The poller never
exits the process; the CLI decides what a failure means.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from codev.auth.client import AuthClient
from codev.errors import (
    AccessDeniedError,
    AuthServerError,
    DeviceCodeExpiredError,
    DeviceFlowFailedError,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5
SLOW_DOWN_INCREMENT = 5


class DeviceFlowState(str, Enum):
    """Lifecycle of one login attempt."""

    REQUESTING = "requesting"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self not in (DeviceFlowState.REQUESTING, DeviceFlowState.AWAITING_APPROVAL)


@dataclass
class DeviceAuthorization:
    """Transient device-code session. Never persisted.

    Attributes:
        device_code: Opaque code used when polling; never shown to the user.
        user_code: Short code the user types in the browser.
        verification_uri: Page where the user enters the code.
        verification_uri_complete: Same page with the code pre-filled.
        expires_at: Monotonic-clock deadline derived from ``expires_in``.
        expires_in: Lifetime in seconds as issued by the server.
        interval: Current poll interval in seconds (grows on ``slow_down``).
    """

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str | None
    expires_at: float
    expires_in: int
    interval: int = DEFAULT_INTERVAL

    @property
    def browser_url(self) -> str:
        return self.verification_uri_complete or self.verification_uri

    @classmethod
    def from_response(cls, data: dict[str, Any], now: float) -> DeviceAuthorization:
        expires_in = int(data.get("expires_in") or 0)
        return cls(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            verification_uri_complete=data.get("verification_uri_complete"),
            expires_at=now + expires_in,
            expires_in=expires_in,
            interval=int(data.get("interval") or DEFAULT_INTERVAL),
        )


class DeviceAuthorizationPoller:
    """Drives one device-code login from code issuance to a terminal state.

    Args:
        auth_client: HTTP collaborator for the device endpoints.
        client_id: OAuth client identifier.
        scope: Space-separated scopes to request.
        sleep: Awaitable delay, injectable for tests.
        clock: Monotonic clock used for the local expiry deadline.
        on_poll: Called with the attempt number before each token request.
    """

    def __init__(
        self,
        auth_client: AuthClient,
        client_id: str,
        scope: str,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_poll: Callable[[int], None] | None = None,
    ):
        self.auth_client = auth_client
        self.client_id = client_id
        self.scope = scope
        self._sleep = sleep
        self._clock = clock
        self._on_poll = on_poll
        self.state = DeviceFlowState.REQUESTING
        self.attempts = 0

    async def request(self) -> DeviceAuthorization:
        """Obtain a device code. Moves REQUESTING -> AWAITING_APPROVAL."""
        try:
            data = await self.auth_client.request_device_code(self.client_id, self.scope)
            authorization = DeviceAuthorization.from_response(data, self._clock())
        except AuthServerError:
            self.state = DeviceFlowState.FAILED
            raise
        except (KeyError, TypeError, ValueError) as e:
            self.state = DeviceFlowState.FAILED
            raise AuthServerError(f"Malformed device authorization response: {e}") from e

        self.state = DeviceFlowState.AWAITING_APPROVAL
        logger.debug(
            "Device code issued: user_code=%s interval=%ss expires_in=%ss",
            authorization.user_code,
            authorization.interval,
            authorization.expires_in,
        )
        return authorization

    async def poll(self, authorization: DeviceAuthorization) -> dict[str, Any]:
        """Poll until the grant completes. Returns the token payload.

        Raises:
            AccessDeniedError: the user declined.
            DeviceCodeExpiredError: the code expired (server signal or local deadline).
            DeviceFlowFailedError: any other error code or a transport failure.
        """
        while True:
            await self._sleep(authorization.interval)

            if authorization.expires_in and self._clock() >= authorization.expires_at:
                self.state = DeviceFlowState.EXPIRED
                raise DeviceCodeExpiredError(
                    self.state, "The device code has expired. Please try again."
                )

            self.attempts += 1
            if self._on_poll:
                self._on_poll(self.attempts)

            try:
                response = await self.auth_client.request_token(
                    authorization.device_code, self.client_id
                )
            except httpx.HTTPError as e:
                self.state = DeviceFlowState.FAILED
                logger.error("Failed to poll for token: %s", e)
                raise DeviceFlowFailedError(self.state, f"Failed to poll for token: {e}") from e

            if response.token is not None:
                self.state = DeviceFlowState.APPROVED
                logger.info("Device authorization approved after %d polls", self.attempts)
                return response.token

            if response.error == "authorization_pending":
                continue
            if response.error == "slow_down":
                authorization.interval += SLOW_DOWN_INCREMENT
                logger.debug("Server asked to slow down; interval now %ss", authorization.interval)
                continue
            if response.error == "access_denied":
                self.state = DeviceFlowState.DENIED
                raise AccessDeniedError(self.state, "Access was denied by the user.")
            if response.error == "expired_token":
                self.state = DeviceFlowState.EXPIRED
                raise DeviceCodeExpiredError(
                    self.state, "The device code has expired. Please try again."
                )

            self.state = DeviceFlowState.FAILED
            description = response.error_description or response.error or "unknown error"
            logger.error("Device authorization failed: %s", description)
            raise DeviceFlowFailedError(self.state, f"Error: {description}")
