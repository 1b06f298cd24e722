"""Unit tests for JWT handling and the get_current_user_id dependency."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError
from src.mp_gateway.auth.dependencies import get_current_user_id
from src.mp_gateway.auth.jwt_handler import create_access_token, decode_token, user_id_from_token


def test_access_token_contains_correct_claims() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"
    assert payload["exp"] > payload["iat"]


def test_decode_valid_token() -> None:
    assert decode_token(create_access_token("user-abc"))["sub"] == "user-abc"
    assert user_id_from_token(create_access_token("user-abc")) == "user-abc"


def test_expired_token_rejected() -> None:
    token = create_access_token("user-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_secret_rejected() -> None:
    forged = jwt.encode({"sub": "user-abc", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(forged)


def test_non_access_token_rejected() -> None:
    refresh = jwt.encode(
        {"sub": "user-abc", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(refresh)


def test_missing_subject_rejected() -> None:
    token = jwt.encode({"type": "access"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


async def test_dependency_returns_subject() -> None:
    assert await get_current_user_id(create_access_token("user-7")) == "user-7"


async def test_dependency_maps_to_401() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id("garbage")
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
