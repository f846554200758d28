import time

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.core.auth import get_current_user, verify_token
from app.core.config import settings


def _token(secret=None, **claims):
    payload = {
        "sub": "landlord-1",
        "email": "owner@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")


def _credentials(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_hs256_token_resolves_user():
    user = get_current_user(_credentials(_token()))
    assert user.id == "landlord-1"
    assert user.email == "owner@example.com"
    assert user.role == "authenticated"


def test_expired_token_rejected():
    with pytest.raises(HTTPException) as exc:
        verify_token(_token(exp=int(time.time()) - 60))
    assert exc.value.status_code == 401
    assert exc.value.detail == "Token has expired"


def test_wrong_secret_rejected():
    with pytest.raises(HTTPException) as exc:
        verify_token(_token(secret="not-the-secret"))
    assert exc.value.status_code == 401


def test_wrong_audience_rejected():
    with pytest.raises(HTTPException) as exc:
        verify_token(_token(aud="anon"))
    assert exc.value.status_code == 401


def test_token_without_subject_rejected():
    with pytest.raises(HTTPException) as exc:
        get_current_user(_credentials(_token(sub="")))
    assert exc.value.status_code == 401
