import os
from pathlib import Path

import bcrypt
import yaml

from docvault.errors import EmptyName, PasswordTooLong, StoreUnavailable, UsernameTaken

DEFAULT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(MAX_PASSWORD_BYTES)
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        # hash_password never accepts these, so nothing stored can match
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


class CredentialStore:
    """username -> bcrypt hash, persisted as a flat YAML mapping."""

    def __init__(self, path, rounds: int = DEFAULT_ROUNDS):
        self.path = Path(path)
        self.rounds = rounds

    def load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StoreUnavailable(f"could not read {self.path.name}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreUnavailable(f"{self.path.name} does not hold a username mapping")
        return {str(k): str(v) for k, v in data.items()}

    def save(self, credentials: dict) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                yaml.safe_dump(dict(credentials), f, default_flow_style=False)
            os.replace(tmp, self.path)
        except OSError as e:
            if tmp.exists():
                tmp.unlink()
            raise StoreUnavailable(f"could not write {self.path.name}: {e}") from e

    def exists(self, username: str) -> bool:
        return username in self.load()

    def register(self, username: str, password: str) -> None:
        if not username or not username.strip():
            raise EmptyName("A username is required.")
        credentials = self.load()
        if username in credentials:
            raise UsernameTaken(username)
        credentials[username] = hash_password(password, self.rounds)
        self.save(credentials)

    def verify(self, username: str, password: str) -> bool:
        password_hash = self.load().get(username)
        if password_hash is None:
            return False
        return check_password(password, password_hash)
