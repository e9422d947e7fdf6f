"""Token issuer/verifier tests.

Learn: Expiry is exercised by issuing tokens "in the past" (the `now`
argument) rather than sleeping. Forged tokens are built with PyJWT
directly, varying one property at a time.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from quill.auth import jwt as tokens
from quill.config import settings


def _forge(payload_overrides=None, secret=None, drop=()):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "7",
        "iat": now,
        "exp": now + timedelta(hours=1),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    payload.update(payload_overrides or {})
    for key in drop:
        payload.pop(key)
    return pyjwt.encode(payload, secret or settings.jwt_secret, algorithm="HS256")


def test_issue_then_verify_returns_subject():
    token = tokens.create_access_token(42)
    assert tokens.verify_token(token) == 42


def test_token_carries_standard_claims():
    token = tokens.create_access_token(5, ttl=timedelta(minutes=30))
    claims = pyjwt.decode(token, options={"verify_signature": False})
    assert claims["sub"] == "5"
    assert claims["iss"] == settings.jwt_issuer
    assert claims["aud"] == settings.jwt_audience
    assert claims["exp"] - claims["iat"] == 30 * 60


def test_default_ttl_comes_from_settings():
    token = tokens.create_access_token(5)
    claims = pyjwt.decode(token, options={"verify_signature": False})
    assert claims["exp"] - claims["iat"] == settings.access_token_expire_minutes * 60


def test_expired_token():
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = tokens.create_access_token(42, ttl=timedelta(hours=1), now=issued)
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(token)
    assert exc.value.reason == tokens.EXPIRED


def test_token_expiring_right_now_is_expired():
    issued = datetime.now(timezone.utc) - timedelta(minutes=10)
    token = tokens.create_access_token(42, ttl=timedelta(minutes=10), now=issued)
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(token)
    assert exc.value.reason == tokens.EXPIRED


def test_token_just_before_expiry_is_valid():
    issued = datetime.now(timezone.utc) - timedelta(minutes=9)
    token = tokens.create_access_token(42, ttl=timedelta(minutes=10), now=issued)
    assert tokens.verify_token(token) == 42


def test_wrong_secret_is_malformed():
    token = _forge(secret="someone-elses-secret")
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(token)
    assert exc.value.reason == tokens.MALFORMED


def test_tampered_payload_is_malformed():
    header, payload, signature = tokens.create_access_token(1).split(".")
    other_payload = tokens.create_access_token(2).split(".")[1]
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(f"{header}.{other_payload}.{signature}")
    assert exc.value.reason == tokens.MALFORMED
    assert payload != other_payload


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "invalid_token_here"])
def test_garbage_is_malformed(garbage):
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(garbage)
    assert exc.value.reason == tokens.MALFORMED


def test_missing_subject_is_malformed():
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(_forge(drop=("sub",)))
    assert exc.value.reason == tokens.MALFORMED


@pytest.mark.parametrize("sub", ["abc", "0", "-3"])
def test_non_user_subject_is_malformed(sub):
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(_forge({"sub": sub}))
    assert exc.value.reason == tokens.MALFORMED


def test_wrong_issuer_is_rejected():
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(_forge({"iss": "somebody-else"}))
    assert exc.value.reason == tokens.OTHER


def test_wrong_audience_is_rejected():
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(_forge({"aud": "other-app"}))
    assert exc.value.reason == tokens.OTHER


def test_missing_expiry_is_rejected():
    with pytest.raises(tokens.TokenError) as exc:
        tokens.verify_token(_forge(drop=("exp",)))
    assert exc.value.reason == tokens.MALFORMED
