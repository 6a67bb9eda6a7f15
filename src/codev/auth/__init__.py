"""Authentication: device-code login and the local credential file."""

from codev.auth.client import AuthClient, SessionUser, TokenPollResponse
from codev.auth.device_flow import (
    DeviceAuthorization,
    DeviceAuthorizationPoller,
    DeviceFlowState,
)
from codev.auth.token_store import StoredCredential, TokenStore

__all__ = [
    "AuthClient",
    "DeviceAuthorization",
    "DeviceAuthorizationPoller",
    "DeviceFlowState",
    "SessionUser",
    "StoredCredential",
    "TokenPollResponse",
    "TokenStore",
]
