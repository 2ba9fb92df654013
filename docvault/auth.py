from functools import wraps
from typing import MutableMapping, Optional

from flask import session

from docvault.errors import NotAuthenticated

_USERNAME_KEY = "username"


class AuthGate:
    """Signed-in identity held in one client's session."""

    def __init__(self, store: MutableMapping):
        self._session = store

    @property
    def username(self) -> Optional[str]:
        return self._session.get(_USERNAME_KEY)

    def is_signed_in(self) -> bool:
        return _USERNAME_KEY in self._session

    def sign_in(self, username: str) -> None:
        self._session[_USERNAME_KEY] = username

    def sign_out(self) -> None:
        self._session.pop(_USERNAME_KEY, None)

    def require_signed_in(self) -> None:
        if not self.is_signed_in():
            raise NotAuthenticated()


def current_gate() -> AuthGate:
    return AuthGate(session)


def signed_in_required(view):
    """Run the gate before the view body; NotAuthenticated aborts the request."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        current_gate().require_signed_in()
        return view(*args, **kwargs)

    return wrapper
