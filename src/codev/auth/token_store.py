# Token Store: file-based bearer credential at ~/.codev/token.
# Created: 2026-09-03
#
# Presence of the file means "logged in"; absence (or an unreadable file)
# means "logged out". The file is rewritten wholesale on every login.

from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from codev.config import get_config_dir

logger = logging.getLogger(__name__)

TOKEN_FILENAME = "token"
DEFAULT_EXPIRY_BUFFER = timedelta(minutes=5)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class StoredCredential:
    """Bearer credential persisted after a successful device login."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    scope: str | None = None
    expires_at: str | None = None  # ISO 8601
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def from_token_response(cls, payload: dict[str, Any]) -> StoredCredential:
        """Build a credential from a token endpoint payload."""
        expires_in = payload.get("expires_in")
        expires_at = None
        if expires_in:
            expires_at = (datetime.now(UTC) + timedelta(seconds=int(expires_in))).isoformat()
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            token_type=payload.get("token_type") or "Bearer",
            scope=payload.get("scope"),
            expires_at=expires_at,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredCredential:
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type") or "Bearer",
            scope=data.get("scope"),
            expires_at=data.get("expires_at"),
            created_at=data.get("created_at") or _now_iso(),
        )

    def expires_at_datetime(self) -> datetime | None:
        if not self.expires_at:
            return None
        parsed = datetime.fromisoformat(self.expires_at)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"


class TokenStore:
    """File-based credential store at <config_dir>/token.

    The file is chmod 0600 (owner-only read/write).
    """

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return get_config_dir() / TOKEN_FILENAME

    def save(self, credential: StoredCredential) -> None:
        """Write the credential, replacing any previous one."""
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(credential), indent=2), encoding="utf-8")
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
        logger.info("Saved credential to %s", path)

    def load(self) -> StoredCredential | None:
        """Load the credential. Returns None if missing or unreadable."""
        path = self.path
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return StoredCredential.from_dict(data)
        except Exception as e:
            logger.warning("Failed to read credential from %s: %s", path, e)
            return None

    def clear(self) -> bool:
        """Delete the credential. Returns True if a file was removed."""
        path = self.path
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted credential at %s", path)
        return True

    def is_expired(self, buffer: timedelta = DEFAULT_EXPIRY_BUFFER) -> bool:
        """True when there is no credential, no expiry, or expiry is within ``buffer``."""
        credential = self.load()
        if credential is None:
            return True
        try:
            expires_at = credential.expires_at_datetime()
        except ValueError:
            logger.warning("Credential has an unparseable expires_at: %r", credential.expires_at)
            return True
        if expires_at is None:
            return True
        return expires_at - datetime.now(UTC) < buffer
