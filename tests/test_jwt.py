"""Unit tests for bearer token verification (HS256) and the user id claim."""

from datetime import datetime, timezone, timedelta

import pytest
from jose import JWTError, jwt

from trainingapp.core.auth import create_access_token, decode_token, user_id_from_claims
from trainingapp.config import settings


def _sign(claims: dict, key: str | None = None) -> str:
    token = jwt.encode(claims, key or settings.secret_key, algorithm=settings.jwt_algorithm)
    return token if isinstance(token, str) else token.decode("utf-8")


def test_issued_token_decodes_to_user_id():
    payload = decode_token(create_access_token(user_id=42, email="u@example.com"))
    assert payload["email"] == "u@example.com"
    assert user_id_from_claims(payload) == 42


def test_token_signed_with_other_key_rejected():
    token = _sign({"sub": "1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}, key="not-our-secret")
    with pytest.raises(JWTError):
        decode_token(token)


def test_expired_token_rejected():
    token = _sign({"sub": "1", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)})
    with pytest.raises(JWTError):
        decode_token(token)


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"sub": "42"}, 42),
        ({"sub": 7}, 7),
        ({"sub": "not-a-number"}, None),
        ({"email": "u@test.com"}, None),
        ({"sub": None}, None),
    ],
)
def test_user_id_from_claims(payload, expected):
    assert user_id_from_claims(payload) == expected
