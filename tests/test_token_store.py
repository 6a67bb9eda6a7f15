# Tests for auth/token_store.py
# Created: 2026-09-20

import json
import stat
from datetime import UTC, datetime, timedelta

import pytest

from codev.auth.token_store import StoredCredential, TokenStore


@pytest.fixture
def store(tmp_path):
    return TokenStore(tmp_path / "token")


def _credential(expires_in: timedelta | None) -> StoredCredential:
    expires_at = None
    if expires_in is not None:
        expires_at = (datetime.now(UTC) + expires_in).isoformat()
    return StoredCredential(access_token="access123", expires_at=expires_at)


class TestStoredCredential:
    def test_from_token_response_computes_expiry(self):
        before = datetime.now(UTC)
        credential = StoredCredential.from_token_response(
            {"access_token": "abc", "expires_in": 3600, "scope": "openid"}
        )
        assert credential.access_token == "abc"
        assert credential.token_type == "Bearer"
        assert credential.scope == "openid"
        expires_at = credential.expires_at_datetime()
        assert expires_at is not None
        assert before + timedelta(seconds=3590) < expires_at

    def test_from_token_response_without_expiry(self):
        credential = StoredCredential.from_token_response({"access_token": "abc"})
        assert credential.expires_at is None
        assert credential.expires_at_datetime() is None

    def test_authorization_header(self):
        assert StoredCredential(access_token="xyz").authorization_header == "Bearer xyz"


class TestTokenStore:
    def test_save_and_load(self, store):
        store.save(_credential(timedelta(hours=1)))
        loaded = store.load()
        assert loaded is not None
        assert loaded.access_token == "access123"

    def test_load_missing(self, store):
        assert store.load() is None

    def test_load_corrupt_file(self, store):
        store.path.write_text("{not json", encoding="utf-8")
        assert store.load() is None

    def test_load_missing_access_token(self, store):
        store.path.write_text(json.dumps({"token_type": "Bearer"}), encoding="utf-8")
        assert store.load() is None

    def test_save_overwrites(self, store):
        store.save(StoredCredential(access_token="first"))
        store.save(StoredCredential(access_token="second"))
        assert store.load().access_token == "second"

    def test_clear(self, store):
        store.save(_credential(None))
        assert store.clear() is True
        assert store.load() is None
        assert store.clear() is False

    def test_file_permissions(self, store):
        store.save(_credential(None))
        mode = store.path.stat().st_mode
        # Owner read+write only
        assert mode & stat.S_IRUSR
        assert mode & stat.S_IWUSR
        assert not (mode & stat.S_IRGRP)
        assert not (mode & stat.S_IROTH)

    def test_default_path_uses_config_dir(self, isolated_config):
        assert TokenStore().path == isolated_config / "token"


class TestExpiry:
    def test_no_credential_is_expired(self, store):
        assert store.is_expired() is True

    def test_no_expiry_is_expired(self, store):
        store.save(_credential(None))
        assert store.is_expired() is True

    def test_future_expiry_is_valid(self, store):
        store.save(_credential(timedelta(hours=1)))
        assert store.is_expired() is False

    def test_within_buffer_is_expired(self, store):
        store.save(_credential(timedelta(minutes=4)))
        assert store.is_expired() is True

    def test_custom_buffer(self, store):
        store.save(_credential(timedelta(minutes=4)))
        assert store.is_expired(buffer=timedelta(minutes=1)) is False

    def test_past_expiry_is_expired(self, store):
        store.save(_credential(timedelta(hours=-1)))
        assert store.is_expired() is True

    def test_unparseable_expiry_is_expired(self, store):
        store.save(StoredCredential(access_token="x", expires_at="not-a-date"))
        assert store.is_expired() is True
