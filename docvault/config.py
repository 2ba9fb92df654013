import json
import os
import secrets
from pathlib import Path
from typing import Optional

from docvault.content import DEFAULT_MARKDOWN_EXTENSIONS
from docvault.credentials import DEFAULT_ROUNDS

CONFIG_ENV = "DOCVAULT_CONFIG"
CONFIG_NAME = "docvault.config.json"

_DEFAULTS = {
    "port": 4567,
    "host": "127.0.0.1",
    "data_dir": "data",
    "credentials_path": "users.yml",
    "secret_key": None,
    "bcrypt_rounds": DEFAULT_ROUNDS,
    "markdown_extensions": DEFAULT_MARKDOWN_EXTENSIONS,
}

_PATH_KEYS = ("data_dir", "credentials_path")


def config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV) or Path.cwd() / CONFIG_NAME)


def load_config(path: Optional[Path] = None, overrides: Optional[dict] = None) -> dict:
    if path is None:
        path = config_path()
    cfg = dict(_DEFAULTS)
    if path.is_file():
        try:
            with open(path) as f:
                user = json.load(f)
            if not isinstance(user, dict):
                raise ValueError("expected a JSON object")
            cfg.update(user)
        except (OSError, ValueError) as e:
            print(f"Warning: could not load {path.name}: {e}")
    if overrides:
        cfg.update(overrides)

    base = path.resolve().parent
    for key in _PATH_KEYS:
        cfg[key] = base / Path(cfg[key]).expanduser()

    if not cfg["secret_key"]:
        print("Warning: no secret_key configured, sessions will not survive a restart")
        cfg["secret_key"] = secrets.token_hex(32)
    cfg["port"] = int(cfg["port"])
    cfg["bcrypt_rounds"] = max(4, int(cfg["bcrypt_rounds"]))
    return cfg
