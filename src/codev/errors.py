# Error types shared across codev.
# Created: 2026-09-02
#
# Lower layers raise these; only the CLI entry point decides whether an
# error ends the process.

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codev.auth.device_flow import DeviceFlowState


class CodevError(Exception):
    """Base class for all codev errors."""


class ConfigurationError(CodevError):
    """A required setting (client id, API key, ...) is missing."""


class AuthenticationError(CodevError):
    """Missing, expired or unrecognised credential."""


class AuthServerError(CodevError):
    """The auth server rejected a request outside of the polling loop."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def hint(self) -> str:
        if self.status_code == 404:
            return "Device authorization endpoint not found. Make sure your auth server is running."
        if self.status_code == 400:
            return "Bad request - check your client id configuration."
        return ""


class DeviceFlowError(CodevError):
    """The device authorization grant ended in a terminal failure state."""

    def __init__(self, state: DeviceFlowState, description: str = ""):
        super().__init__(description or state.value)
        self.state = state
        self.description = description


class AccessDeniedError(DeviceFlowError):
    """The user declined the authorization request."""


class DeviceCodeExpiredError(DeviceFlowError):
    """The device code expired before the user approved it."""


class DeviceFlowFailedError(DeviceFlowError):
    """Unexpected server error code or transport failure while polling."""


class InferenceError(CodevError):
    """The model provider call failed."""
