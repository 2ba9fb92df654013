"""Tests for docvault.credentials: YAML-backed bcrypt credential store."""

import os

import pytest
import yaml

from docvault.credentials import CredentialStore, check_password, hash_password
from docvault.errors import EmptyName, PasswordTooLong, StoreUnavailable, UsernameTaken

from tests.conftest import TEST_ROUNDS


def test_hash_is_not_plaintext():
    hashed = hash_password("secret", TEST_ROUNDS)
    assert hashed != "secret"
    assert hashed.startswith("$2")
    assert check_password("secret", hashed)
    assert not check_password("wrong", hashed)


def test_check_password_with_garbage_hash():
    assert check_password("secret", "not-a-bcrypt-hash") is False


class TestCredentialStore:

    def test_missing_file_is_empty(self, credentials):
        assert credentials.load() == {}

    def test_empty_file_is_empty(self, credentials, credentials_path):
        credentials_path.write_text("")
        assert credentials.load() == {}

    def test_save_and_load_round_trip(self, credentials):
        mapping = {"alice": "$2b$04$abc", "bob": "$2b$04$def"}
        credentials.save(mapping)
        assert credentials.load() == mapping

    def test_save_writes_yaml_mapping(self, credentials, credentials_path):
        credentials.save({"alice": "hash"})
        assert yaml.safe_load(credentials_path.read_text()) == {"alice": "hash"}
        assert not os.path.exists(str(credentials_path) + ".tmp")

    def test_malformed_file(self, credentials, credentials_path):
        credentials_path.write_text("alice: [unclosed\n")
        with pytest.raises(StoreUnavailable):
            credentials.load()

    def test_non_mapping_file(self, credentials, credentials_path):
        credentials_path.write_text("- alice\n- bob\n")
        with pytest.raises(StoreUnavailable):
            credentials.load()

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = CredentialStore(blocker / "users.yml", rounds=TEST_ROUNDS)
        with pytest.raises(StoreUnavailable):
            store.save({"alice": "hash"})

    def test_register_then_verify(self, credentials):
        credentials.register("alice", "secret")
        assert credentials.verify("alice", "secret") is True
        assert credentials.load()["alice"] != "secret"

    def test_verify_wrong_password_and_unknown_user_look_alike(self, credentials):
        credentials.register("alice", "secret")
        assert credentials.verify("alice", "wrong") is False
        assert credentials.verify("mallory", "secret") is False

    def test_register_twice_keeps_first_hash(self, credentials):
        credentials.register("alice", "secret")
        first = credentials.load()["alice"]
        with pytest.raises(UsernameTaken) as exc:
            credentials.register("alice", "other")
        assert str(exc.value) == "Username already exists."
        assert credentials.load()["alice"] == first
        assert credentials.verify("alice", "secret")
        assert not credentials.verify("alice", "other")

    def test_register_keeps_other_users(self, credentials):
        credentials.register("alice", "secret")
        credentials.register("bob", "hunter2")
        assert set(credentials.load()) == {"alice", "bob"}
        assert credentials.exists("bob")

    def test_register_blank_username(self, credentials):
        with pytest.raises(EmptyName):
            credentials.register("  ", "secret")
        assert credentials.load() == {}

    def test_register_overlong_password(self, credentials):
        with pytest.raises(PasswordTooLong) as exc:
            credentials.register("bob", "x" * 80)
        assert str(exc.value) == "Passwords can be at most 72 bytes long."
        assert credentials.load() == {}

    def test_verify_overlong_password(self, credentials):
        credentials.register("bob", "x" * 72)
        assert credentials.verify("bob", "x" * 72) is True
        assert credentials.verify("bob", "x" * 80) is False


def test_password_limit_counts_bytes_not_characters():
    # 36 two-byte characters fit, 37 do not
    assert check_password("é" * 36, hash_password("é" * 36, TEST_ROUNDS))
    with pytest.raises(PasswordTooLong):
        hash_password("é" * 37, TEST_ROUNDS)
