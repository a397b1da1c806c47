"""Tests for JWT handling and the authentication dependency."""

from datetime import timedelta

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from studyhub.auth.dependencies import get_current_user
from studyhub.database.user_repository import UserRepository
from studyhub.auth.jwt import (
    JWT_ALGORITHM,
    create_access_token,
    decode_access_token,
    get_user_id_from_token,
)


def _bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("user-1")
        payload = decode_access_token(token)
        assert payload["sub"] == "user-1"
        assert get_user_id_from_token(token) == "user-1"

    def test_expired_token(self):
        token = create_access_token("user-1", expires_in=timedelta(seconds=-5))
        assert decode_access_token(token) is None

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "user-1"}, "some-other-secret", algorithm=JWT_ALGORITHM)
        assert get_user_id_from_token(token) is None

    def test_garbage(self):
        assert get_user_id_from_token("not-a-token") is None


class TestGetCurrentUser:

    def test_valid_token(self, db_session, test_user_id):
        user = get_current_user(_bearer(create_access_token(test_user_id)), db_session)
        assert user.id == test_user_id
        assert user.timezone == "America/New_York"

    def test_timezone_update_visible_to_next_request(self, db_session, test_user_id):
        repo = UserRepository(db_session)
        repo.create_or_update(repo.get(test_user_id).model_copy(update={"timezone": "Asia/Tokyo"}))
        user = get_current_user(_bearer(create_access_token(test_user_id)), db_session)
        assert user.timezone == "Asia/Tokyo"

    def test_missing_credentials(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(None, db_session)
        assert exc_info.value.status_code == 401

    def test_unknown_user(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_bearer(create_access_token("nobody")), db_session)
        assert exc_info.value.detail == "User not found"

    def test_endpoint_requires_auth(self):
        from fastapi.testclient import TestClient
        from studyhub.api.app import app

        client = TestClient(app)
        response = client.get("/assignments")
        assert response.status_code == 401
