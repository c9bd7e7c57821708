"""Password hashing and session tokens.

Stored hashes look like ``pbkdf2_sha256$<iterations>$<salt>$<digest>`` with
unpadded urlsafe base64 for salt and digest. Tokens are HS256 JWTs carrying
the user id in ``sub`` and expire JWT_TTL_SECONDS after issue.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import secrets
import time
from typing import Any

import jwt

JWT_SECRET = os.environ.get("JWT_SECRET", "dev-secret-change-me")
JWT_ALG = "HS256"
JWT_TTL_SECONDS = int(os.environ.get("JWT_TTL_SECONDS", "86400"))  # 24h

HASH_SCHEME = "pbkdf2_sha256"
PBKDF2_ITERS = int(os.environ.get("PBKDF2_ITERS", "200000"))
SALT_BYTES = 16
DIGEST_BYTES = 32


def _encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _derive(password: str, salt: bytes, iterations: int, length: int = DIGEST_BYTES) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=length)


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    digest = _derive(password, salt, PBKDF2_ITERS)
    return "$".join((HASH_SCHEME, str(PBKDF2_ITERS), _encode(salt), _encode(digest)))


def verify_password(password: str, stored: str) -> bool:
    parts = stored.split("$")
    if len(parts) != 4 or parts[0] != HASH_SCHEME:
        return False
    try:
        iterations = int(parts[1])
        salt, expected = _decode(parts[2]), _decode(parts[3])
    except ValueError:
        return False
    return hmac.compare_digest(_derive(password, salt, iterations, len(expected)), expected)


def make_token(user_id: int, now: int | None = None) -> str:
    issued = int(time.time()) if now is None else now
    claims: dict[str, Any] = {"sub": str(user_id), "iat": issued, "exp": issued + JWT_TTL_SECONDS}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    """Check signature and expiry. Raises jwt.InvalidTokenError on any failure."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG], options={"require": ["sub", "exp"]})
