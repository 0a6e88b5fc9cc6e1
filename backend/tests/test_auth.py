"""
Tests for authentication helpers.

Tests: password hashing, JWT issue/decode, require_token_subject, and the
auth_service register/login flow.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import warnings
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException

from config import settings
from domain.errors import ConflictError, UnauthorizedError
from middleware.auth import (
    decode_access_token,
    hash_password,
    issue_access_token,
    require_token_subject,
    verify_password,
)


class TestPasswords:

    @pytest.mark.unit
    def test_round_trip(self):
        stored = hash_password("correct horse")
        assert verify_password("correct horse", stored) is True
        assert verify_password("wrong horse", stored) is False

    @pytest.mark.unit
    def test_hash_is_bcrypt_with_configured_cost(self):
        first = hash_password("pw", rounds=5)
        second = hash_password("pw")
        assert first.startswith("$2b$05$")
        assert second.startswith(f"$2b${settings.bcrypt_rounds:02d}$")
        assert len(first) == len(second) == 60

    @pytest.mark.unit
    def test_same_password_gets_a_fresh_salt(self):
        first = hash_password("pw")
        second = hash_password("pw")
        assert first != second
        assert verify_password("pw", first) and verify_password("pw", second)

    @pytest.mark.unit
    @pytest.mark.parametrize("stored", ["", "plaintext", "md5$1$salt$abc", "pbkdf2_sha256$1000$salt$abc", "$2b$04$short"])
    def test_unrecognized_hash_never_verifies(self, stored):
        assert verify_password("anything", stored) is False

    @pytest.mark.unit
    def test_register_rejects_passwords_past_72_bytes(self):
        from pydantic import ValidationError
        from models import RegisterRequest

        ok = RegisterRequest(email="a@example.com", password="x" * 72, name="A")
        assert ok.password == "x" * 72
        with pytest.raises(ValidationError):
            RegisterRequest(email="a@example.com", password="é" * 37, name="A")


class TestTokens:

    @pytest.mark.unit
    def test_issue_then_decode(self):
        token = issue_access_token(user_id=42, role="ADMIN")
        payload = decode_access_token(token)
        assert payload["sub"] == "42"
        assert payload["role"] == "ADMIN"
        assert payload["iss"] == settings.jwt_issuer

    @pytest.mark.unit
    def test_signing_key_is_long_enough_for_hs256(self):
        assert len(settings.jwt_secret.encode("utf-8")) >= 32
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            decode_access_token(issue_access_token(user_id=1, role="USER"))
        assert not [w for w in caught if "key" in str(w.message).lower()]

    @pytest.mark.unit
    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "iss": settings.jwt_issuer,
                "sub": "1",
                "iat": int(past.timestamp()),
                "exp": int((past + timedelta(minutes=5)).timestamp()),
            },
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401
        assert "expired" in exc_info.value.detail.lower()

    @pytest.mark.unit
    def test_forged_signature_rejected(self):
        token = jwt.encode(
            {"iss": settings.jwt_issuer, "sub": "1", "iat": 0, "exp": 4_102_444_800},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401


class TestRequireTokenSubject:

    @pytest.mark.unit
    async def test_valid_bearer_returns_user_id(self):
        token = issue_access_token(user_id=7, role="USER")
        assert await require_token_subject(authorization=f"Bearer {token}") == 7

    @pytest.mark.unit
    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Token abc", "abc"])
    async def test_missing_or_malformed_header_raises_401(self, header):
        with pytest.raises(HTTPException) as exc_info:
            await require_token_subject(authorization=header)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    async def test_non_numeric_subject_raises_401(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "iss": settings.jwt_issuer,
                "sub": "not-a-user-id",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(minutes=5)).timestamp()),
            },
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            await require_token_subject(authorization=f"Bearer {token}")
        assert exc_info.value.status_code == 401


class TestAuthService:

    @pytest.mark.unit
    async def test_register_then_authenticate(self, db_session):
        from services import auth_service

        user = await auth_service.register(db_session, email="new@example.com", password="secret123", name="New")
        await db_session.commit()
        assert user.role == "USER"
        assert user.password_hash != "secret123"

        found = await auth_service.authenticate(db_session, email="new@example.com", password="secret123")
        assert found.id == user.id

    @pytest.mark.unit
    async def test_duplicate_email_conflicts(self, db_session, customer):
        from services import auth_service

        with pytest.raises(ConflictError) as exc_info:
            await auth_service.register(db_session, email="customer@example.com", password="x123456", name="Dup")
        assert exc_info.value.status_code == 409

    @pytest.mark.unit
    @pytest.mark.parametrize("email,password", [
        ("customer@example.com", "wrong-password"),
        ("nobody@example.com", "secret123"),
    ])
    async def test_bad_credentials_are_indistinguishable(self, db_session, customer, email, password):
        from services import auth_service

        with pytest.raises(UnauthorizedError) as exc_info:
            await auth_service.authenticate(db_session, email=email, password=password)
        assert exc_info.value.message == "Invalid credentials"
