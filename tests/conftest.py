"""
DocVault test suite: shared fixtures.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import pytest

from docvault.credentials import CredentialStore, hash_password
from docvault.documents import FileDocumentStore, MemoryDocumentStore
from docvault.server import create_app

# bcrypt's minimum work factor, keeps the suite fast
TEST_ROUNDS = 4


# ---------------------------------------------------------------------------
# Environment: never pick up a docvault.config.json from the working directory
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    monkeypatch.setenv("DOCVAULT_CONFIG", str(tmp_path / "absent.config.json"))


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def credentials_path(tmp_path):
    return tmp_path / "users.yml"


@pytest.fixture
def credentials(credentials_path):
    return CredentialStore(credentials_path, rounds=TEST_ROUNDS)


@pytest.fixture(params=["file", "memory"])
def store(request, data_dir):
    """Each document store test runs against both backings."""
    if request.param == "file":
        return FileDocumentStore(data_dir)
    return MemoryDocumentStore()


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

@pytest.fixture
def app(data_dir, credentials_path):
    credentials_path.write_text(
        f"alice: '{hash_password('secret', TEST_ROUNDS)}'\n", encoding="utf-8"
    )
    app = create_app({
        "data_dir": str(data_dir),
        "credentials_path": str(credentials_path),
        "secret_key": "test-secret-key",
        "bcrypt_rounds": TEST_ROUNDS,
    })
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signed_in_client(client):
    with client.session_transaction() as sess:
        sess["username"] = "alice"
    return client


def flashes(client) -> list:
    """Pending flash messages, without consuming them."""
    with client.session_transaction() as sess:
        return [message for _category, message in sess.get("_flashes", [])]
