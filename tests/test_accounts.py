# tests/test_accounts.py

from __future__ import annotations

import time

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tracker import accounts
from tracker.auth import JWT_TTL_SECONDS, make_token
from tracker.errors import DuplicateUser, InvalidCredentials, InvalidToken, ValidationFailure
from tracker.models import User


def _user_count(db: Session) -> int:
    return db.execute(select(func.count()).select_from(User)).scalar_one()


def test_register_returns_user_without_hash_and_token(db: Session) -> None:
    out = accounts.register(db, "a@x.com", "pw1")
    assert out.user.email == "a@x.com"
    assert out.token
    assert set(out.user.model_dump()) == {"id", "email"}
    assert accounts.resolve_token(db, out.token).id == out.user.id


def test_register_same_email_twice_is_rejected(db: Session) -> None:
    accounts.register(db, "a@x.com", "pw1")
    with pytest.raises(DuplicateUser):
        accounts.register(db, "A@X.com ", "pw2")
    assert _user_count(db) == 1


def test_register_requires_email_and_password(db: Session) -> None:
    with pytest.raises(ValidationFailure):
        accounts.register(db, "", "pw1")
    with pytest.raises(ValidationFailure):
        accounts.register(db, "a@x.com", "")
    with pytest.raises(ValidationFailure):
        accounts.register(db, "no-at-sign", "pw1")
    assert _user_count(db) == 0


def test_login_scenario(db: Session) -> None:
    reg = accounts.register(db, "a@x.com", "pw1")

    ok = accounts.login(db, "a@x.com", "pw1")
    assert ok.user.id == reg.user.id

    with pytest.raises(InvalidCredentials):
        accounts.login(db, "a@x.com", "wrong")


def test_login_unknown_email_looks_like_wrong_password(db: Session) -> None:
    accounts.register(db, "a@x.com", "pw1")
    with pytest.raises(InvalidCredentials) as unknown:
        accounts.login(db, "nobody@x.com", "pw1")
    with pytest.raises(InvalidCredentials) as wrong:
        accounts.login(db, "a@x.com", "nope")
    assert unknown.value.detail == wrong.value.detail


def test_login_email_is_case_insensitive(db: Session) -> None:
    accounts.register(db, "Mixed@Case.com", "pw1")
    assert accounts.login(db, "mixed@case.COM", "pw1").user.email == "mixed@case.com"


def test_token_valid_for_a_day_then_rejected(db: Session) -> None:
    uid = accounts.register(db, "a@x.com", "pw1").user.id
    now = int(time.time())

    almost_expired = make_token(uid, now=now - JWT_TTL_SECONDS + 60)
    assert accounts.resolve_token(db, almost_expired).id == uid

    expired = make_token(uid, now=now - JWT_TTL_SECONDS - 1)
    with pytest.raises(InvalidToken):
        accounts.resolve_token(db, expired)


def test_token_for_deleted_user_is_rejected(db: Session) -> None:
    out = accounts.register(db, "a@x.com", "pw1")
    db.delete(db.get(User, out.user.id))
    db.commit()
    with pytest.raises(InvalidToken):
        accounts.resolve_token(db, out.token)


def test_malformed_token_is_rejected(db: Session) -> None:
    with pytest.raises(InvalidToken):
        accounts.resolve_token(db, "abc.def.ghi")
