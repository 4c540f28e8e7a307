"""Tests for JWT token management."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from photohunt.auth.jwt import create_access_token, token_login_time, verify_token
from photohunt.config import get_settings


class TestAccessToken:
    def test_create_and_verify(self):
        token = create_access_token(user_id=1, username="alice")
        payload = verify_token(token, expected_type="access")
        assert payload["sub"] == "1"
        assert payload["username"] == "alice"
        assert payload["is_admin"] is False
        assert payload["type"] == "access"
        assert payload["iss"] == "photohunt"

    def test_admin_flag(self):
        payload = verify_token(create_access_token(user_id=2, username="admin", is_admin=True))
        assert payload["is_admin"] is True

    def test_wrong_type_rejected(self):
        token = create_access_token(user_id=1, username="alice")
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token, expected_type="refresh")

    def test_expired_rejected(self):
        settings = get_settings()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "type": "access", "iss": settings.jwt_issuer, "iat": now - timedelta(hours=2),
             "exp": now - timedelta(hours=1)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_bad_signature_rejected(self):
        token = jwt.encode({"sub": "1", "type": "access", "iss": "photohunt"}, "another-secret-key-entirely-000000", "HS256")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)


class TestLoginTime:
    def test_login_time_claim_keeps_microseconds(self):
        login = datetime(2024, 5, 4, 12, 30, 15, 123456, tzinfo=timezone.utc)
        payload = verify_token(create_access_token(1, "alice", login_time=login))
        assert token_login_time(payload) == login

    def test_falls_back_to_iat(self):
        assert token_login_time({"iat": 1_700_000_000}) == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)

    def test_naive_claim_is_utc(self):
        parsed = token_login_time({"login_time": "2024-05-04T12:00:00"})
        assert parsed.tzinfo is not None

    def test_malformed_claim(self):
        with pytest.raises(jwt.InvalidTokenError):
            token_login_time({"login_time": "yesterday"})
