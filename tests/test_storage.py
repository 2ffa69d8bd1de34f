"""Tests for credential persistence"""

import json
import os
import stat

from codex_oauth import CredentialStore, PersistedCredential


class TestCredentialStore:
    def test_load_missing(self, store):
        assert store.load() is None
        assert not store.exists()

    def test_save_and_load(self, store, valid_credential):
        assert store.save(valid_credential)
        assert store.load() == valid_credential
        assert store.exists()

    def test_on_disk_shape(self, store, valid_credential):
        store.save(valid_credential)
        data = json.loads(store.credential_file.read_text())
        assert data == {
            "type": "oauth",
            "access": "access-token",
            "refresh": "refresh-token",
            "expires": valid_credential.expires_at_ms,
            "accountId": "acct_123",
        }

    def test_account_id_omitted_when_unknown(self, store):
        store.save(PersistedCredential(access="a", refresh="r", expires_at_ms=1))
        data = json.loads(store.credential_file.read_text())
        assert "accountId" not in data
        assert store.load().account_id is None

    def test_file_is_owner_only(self, store, valid_credential):
        store.save(valid_credential)
        mode = stat.S_IMODE(os.stat(store.credential_file).st_mode)
        assert mode == 0o600

    def test_save_replaces_whole_record(self, store, valid_credential):
        store.save(valid_credential)
        replacement = PersistedCredential(access="new", refresh="new-r", expires_at_ms=5)
        store.save(replacement)
        assert store.load() == replacement
        # No temporary files left behind
        assert os.listdir(store.credential_file.parent) == ["auth.json"]

    def test_unrecognised_shape_is_absent(self, store):
        store.credential_file.parent.mkdir(parents=True)
        store.credential_file.write_text(json.dumps({"type": "api", "key": "x"}))
        assert store.load() is None

    def test_corrupt_file_is_absent(self, store):
        store.credential_file.parent.mkdir(parents=True)
        store.credential_file.write_text("{not json")
        assert store.load() is None

    def test_clear(self, store, valid_credential):
        store.save(valid_credential)
        assert store.clear()
        assert store.load() is None
        # Clearing twice is fine
        assert store.clear()


class TestPersistedCredential:
    def test_is_expired(self):
        credential = PersistedCredential(access="a", refresh="r", expires_at_ms=1000)
        assert not credential.is_expired(now_ms=1000)
        assert credential.is_expired(now_ms=1001)

    def test_empty_access_is_expired(self):
        credential = PersistedCredential(access="", refresh="r", expires_at_ms=10 ** 15)
        assert credential.is_expired()

    def test_from_dict_rejects_bool_expiry(self):
        assert PersistedCredential.from_dict(
            {"type": "oauth", "access": "a", "refresh": "r", "expires": True}
        ) is None

    def test_from_dict_requires_refresh(self):
        assert PersistedCredential.from_dict(
            {"type": "oauth", "access": "a", "refresh": "", "expires": 10}
        ) is None
