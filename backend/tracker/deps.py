from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .accounts import resolve_token, user_out
from .db import get_db
from .errors import InvalidToken, Unauthorized
from .schemas import UserOut


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise Unauthorized()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise InvalidToken()
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None),
    s: Session = Depends(get_db),
) -> UserOut:
    """Access guard: resolve the bearer token to a stored user or reject with 401."""
    token = bearer_token(authorization)
    return user_out(resolve_token(s, token))
