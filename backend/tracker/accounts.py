"""User registration, login and token resolution.

Tokens are stateless: nothing is stored server side, so logging out is purely
a client concern and an issued token stays valid until it expires.
"""
from __future__ import annotations

import logging
import time

import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import decode_token, hash_password, make_token, verify_password
from .errors import DuplicateUser, InvalidCredentials, InvalidToken, ValidationFailure
from .models import User
from .schemas import AuthOut, UserOut

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def user_out(u: User) -> UserOut:
    return UserOut(id=int(u.id), email=u.email)


def find_user(s: Session, email: str) -> User | None:
    return s.execute(select(User).where(User.email == normalize_email(email))).scalars().first()


def register(s: Session, email: str, password: str) -> AuthOut:
    email = normalize_email(email)
    if not email or not password:
        raise ValidationFailure("email/password required")
    if "@" not in email:
        raise ValidationFailure("invalid email")

    if find_user(s, email) is not None:
        raise DuplicateUser()

    u = User(email=email, password_hash=hash_password(password), created_at=int(time.time()))
    s.add(u)
    try:
        s.commit()
    except IntegrityError:
        # lost a race against a concurrent registration of the same address
        s.rollback()
        raise DuplicateUser() from None
    s.refresh(u)

    logger.info("registered user id=%s email=%s", u.id, u.email)
    return AuthOut(user=user_out(u), token=make_token(int(u.id)))


def login(s: Session, email: str, password: str) -> AuthOut:
    u = find_user(s, email)
    # unknown email and wrong password are indistinguishable to the caller
    if u is None or not verify_password(password or "", u.password_hash):
        logger.info("login rejected email=%s", normalize_email(email))
        raise InvalidCredentials()

    logger.info("login ok user id=%s", u.id)
    return AuthOut(user=user_out(u), token=make_token(int(u.id)))


def resolve_token(s: Session, token: str) -> User:
    try:
        claims = decode_token(token)
        user_id = int(claims["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        logger.debug("token rejected: %s", exc)
        raise InvalidToken() from None

    u = s.get(User, user_id)
    if u is None:
        logger.debug("token for missing user id=%s", user_id)
        raise InvalidToken()
    return u
