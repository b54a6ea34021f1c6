from datetime import datetime, timedelta, timezone

import jwt
import pytest

from ssrstore.errors import AuthError, AuthReason
from ssrstore.security import PasswordHasher, TokenService

SECRET = "unit-test-secret-0123456789abcdef"
hasher = PasswordHasher()


@pytest.mark.parametrize("password", ["hunter2", "pässwörd with spaces", "!@#$%^&*()_+{}|:<>?~`"])
def test_hash_verifies_original_password(password):
    stored = hasher.hash(password)
    assert stored != password
    assert hasher.verify(password, stored)
    assert not hasher.verify(password + "x", stored)


def test_hash_is_salted():
    assert hasher.hash("same") != hasher.hash("same")


def test_token_roundtrip():
    tokens = TokenService(SECRET)
    assert tokens.verify(tokens.issue("acct-1")) == "acct-1"


def test_token_expires_after_one_hour():
    tokens = TokenService(SECRET)
    issued = datetime.now(timezone.utc) - timedelta(hours=1, seconds=5)
    with pytest.raises(AuthError) as exc:
        tokens.verify(tokens.issue("acct-1", now=issued))
    assert exc.value.reason == AuthReason.EXPIRED
    assert exc.value.status_code == 401

    still_fresh = datetime.now(timezone.utc) - timedelta(minutes=59)
    assert tokens.verify(tokens.issue("acct-1", now=still_fresh)) == "acct-1"


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token(token):
    with pytest.raises(AuthError) as exc:
        TokenService(SECRET).verify(token)
    assert exc.value.reason == AuthReason.MISSING


def test_token_signed_with_other_key_is_invalid():
    forged = TokenService("another-secret-that-is-long-enough").issue("acct-1")
    with pytest.raises(AuthError) as exc:
        TokenService(SECRET).verify(forged)
    assert exc.value.reason == AuthReason.INVALID


def test_malformed_token_is_invalid():
    with pytest.raises(AuthError) as exc:
        TokenService(SECRET).verify("not.a.jwt")
    assert exc.value.reason == AuthReason.INVALID


def test_token_without_subject_is_invalid():
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")
    with pytest.raises(AuthError):
        TokenService(SECRET).verify(token)


def test_secret_is_required():
    with pytest.raises(ValueError):
        TokenService("")
