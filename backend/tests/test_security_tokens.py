"""
Tests for JWT access token handling.
"""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from storefront.core.config import get_settings
from storefront.core.security import (
    TokenError,
    create_access_token,
    decode_token,
    get_token_user_id,
)


def test_token_round_trip():
    user_id = uuid.uuid4()

    payload = decode_token(create_access_token(user_id, "vendor"))

    assert payload["role"] == "vendor"
    assert payload["type"] == "access"
    assert get_token_user_id(payload) == user_id


def test_expired_token_is_rejected():
    token = create_access_token(uuid.uuid4(), "customer", expires_delta=timedelta(minutes=-5))

    with pytest.raises(TokenError) as exc_info:
        decode_token(token)

    assert exc_info.value.code == "TOKEN_EXPIRED"


def test_tampered_token_is_rejected():
    token = create_access_token(uuid.uuid4(), "customer")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(TokenError) as exc_info:
        decode_token(tampered)

    assert exc_info.value.code == "TOKEN_INVALID"


def test_token_signed_with_other_key_is_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "access"},
        "another-secret-key-that-is-long-enough",
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(TokenError) as exc_info:
        decode_token(token)

    assert exc_info.value.code == "TOKEN_INVALID"


def test_non_access_token_is_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "refresh"},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(TokenError) as exc_info:
        decode_token(token)

    assert exc_info.value.code == "TOKEN_TYPE_INVALID"


def test_empty_token_is_rejected():
    with pytest.raises(TokenError) as exc_info:
        decode_token("")

    assert exc_info.value.code == "EMPTY_TOKEN"


@pytest.mark.parametrize(
    "payload,code",
    [
        ({}, "TOKEN_SUBJECT_MISSING"),
        ({"sub": "user-42"}, "TOKEN_SUBJECT_INVALID"),
    ],
)
def test_subject_must_be_a_uuid(payload, code):
    with pytest.raises(TokenError) as exc_info:
        get_token_user_id(payload)

    assert exc_info.value.code == code
