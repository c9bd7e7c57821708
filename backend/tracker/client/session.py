from __future__ import annotations

import logging
import time
from typing import Any

import jwt

from .api import ApiClient
from .storage import GUEST_KEY, TOKEN_KEY, LocalStorage

logger = logging.getLogger(__name__)

GUEST = "guest"
AUTHENTICATED = "authenticated"


def token_expired(token: str, now: float | None = None) -> bool:
    # The client cannot check the signature; it only reads the expiry claim.
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return True
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return True
    return (time.time() if now is None else now) >= exp


class AuthSession:
    """Tracks whether the client runs as a guest or with a stored token.

    Switching modes never moves data between the local store and the server.
    """

    def __init__(self, storage: LocalStorage, api: ApiClient) -> None:
        self.storage = storage
        self.api = api
        self.user: dict[str, Any] | None = None

    @property
    def mode(self) -> str:
        # Only the guest flag or a missing token selects local storage. An
        # expired token keeps the session authenticated so writes fail instead
        # of landing in the guest store.
        if self.storage.get_item(GUEST_KEY) == "true":
            return GUEST
        if self.storage.get_item(TOKEN_KEY):
            return AUTHENTICATED
        return GUEST

    @property
    def expired(self) -> bool:
        token = self.storage.get_item(TOKEN_KEY)
        return bool(token) and token_expired(token)

    @property
    def is_guest(self) -> bool:
        return self.mode == GUEST

    def _accept(self, data: dict[str, Any]) -> dict[str, Any]:
        self.storage.set_item(TOKEN_KEY, data["token"])
        self.storage.remove_item(GUEST_KEY)
        self.user = data["user"]
        return self.user

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self.api.post("/auth/login", {"email": email, "password": password})
        logger.info("logged in as %s", data["user"].get("email"))
        return self._accept(data)

    def register(self, email: str, password: str) -> dict[str, Any]:
        data = self.api.post("/auth/register", {"email": email, "password": password})
        logger.info("registered %s", data["user"].get("email"))
        return self._accept(data)

    def logout(self) -> None:
        # client-side only: the token itself stays valid until it expires
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(GUEST_KEY)
        self.user = None

    def guest_login(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.set_item(GUEST_KEY, "true")
        self.user = None
