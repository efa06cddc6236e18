"""
Unit tests for TokenStore.
"""

import json

import pytest

from fittrack_client.auth_token.store import TokenStore
from fittrack_client.auth_token.types import AuthUser
from fittrack_client.storage import JsonFileStorage, MemoryStorage
from tests.fixtures.token_fixtures import HOUR, MALFORMED_TOKEN, make_token


class TestTokenStore:
    def setup_method(self):
        self.storage = MemoryStorage()
        self.store = TokenStore(self.storage)
        self.user = AuthUser(sub="user-1", email="athlete@example.com", name="Athlete")

    def test_empty_store(self):
        assert self.store.access_token is None
        assert self.store.user is None
        assert self.store.expires_at is None
        assert self.store.is_authenticated is False

    def test_save_persists_token_and_user_under_known_keys(self):
        token = make_token()

        self.store.save(token, self.user)

        assert self.storage.get("access_token") == token
        assert json.loads(self.storage.get("user_payload")) == {
            "sub": "user-1",
            "email": "athlete@example.com",
            "name": "Athlete",
        }
        assert self.store.user == self.user
        assert self.store.is_authenticated is True

    def test_save_without_user_keeps_previous_user(self):
        self.store.save(make_token(), self.user)

        self.store.save(make_token(expires_in=2 * HOUR))

        assert self.store.user == self.user

    def test_save_rejects_empty_token(self):
        with pytest.raises(ValueError):
            self.store.save("")

    def test_expiry_derived_from_token(self):
        token = make_token(expires_in=HOUR, now=1_700_000_000)

        self.store.save(token, self.user)

        assert self.store.expires_at.timestamp() == 1_700_000_000 + HOUR

    def test_expiry_recomputed_when_token_changes(self):
        self.store.save(make_token(expires_in=HOUR, now=1_700_000_000))
        first = self.store.expires_at

        self.store.save(make_token(expires_in=2 * HOUR, now=1_700_000_000))

        assert self.store.expires_at != first
        assert self.store.expires_at.timestamp() == 1_700_000_000 + 2 * HOUR

    def test_malformed_token_has_no_expiry(self):
        self.store.save(MALFORMED_TOKEN)

        assert self.store.access_token == MALFORMED_TOKEN
        assert self.store.expires_at is None

    def test_clear_removes_everything(self):
        self.store.save(make_token(), self.user)

        self.store.clear()

        assert self.store.access_token is None
        assert self.store.user is None
        assert self.store.expires_at is None
        assert self.storage.keys() == []

    def test_unreadable_user_payload_is_ignored(self):
        self.storage.set("user_payload", "{not json")

        assert self.store.user is None


def test_store_survives_restart_through_file_storage(tmp_path):
    path = tmp_path / "state.json"
    token = make_token()
    TokenStore(JsonFileStorage(path)).save(
        token, AuthUser(sub="user-1", email="athlete@example.com")
    )

    reloaded = TokenStore(JsonFileStorage(path))

    assert reloaded.access_token == token
    assert reloaded.user == AuthUser(sub="user-1", email="athlete@example.com")
