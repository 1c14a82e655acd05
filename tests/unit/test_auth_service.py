"""
Unit tests for the admin gate.
"""

from unittest.mock import MagicMock
import pytest

from services.auth_service import AuthService, bearer_token
from exceptions import AuthenticationError


@pytest.fixture
def auth(mock_supabase, mock_auth_client):
    mock_supabase.set_table_data("users", [
        {"id": "1", "auth_user_id": "admin-uid", "role": "admin"},
        {"id": "2", "auth_user_id": "viewer-uid", "role": "viewer"},
    ])
    return AuthService(auth_client=mock_auth_client, db=mock_supabase)


def signed_in(mock_auth_client, uid):
    mock_auth_client.auth.get_user.return_value = MagicMock(user=MagicMock(id=uid))


class TestBearerToken:

    @pytest.mark.parametrize("header, expected", [
        ("Bearer abc", "abc"),
        ("bearer   abc ", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
        (None, None),
    ])
    def test_bearer_token(self, header, expected):
        assert bearer_token(header) == expected


class TestRequireAdmin:
    """Tests for AuthService.require_admin."""

    def test_admin_passes(self, auth, mock_auth_client):
        signed_in(mock_auth_client, "admin-uid")

        user = auth.require_admin("Bearer token-1")

        assert user.auth_user_id == "admin-uid"
        assert user.role == "admin"
        mock_auth_client.auth.get_user.assert_called_once_with("token-1")

    def test_non_admin_rejected(self, auth, mock_auth_client):
        signed_in(mock_auth_client, "viewer-uid")

        with pytest.raises(AuthenticationError) as exc_info:
            auth.require_admin("Bearer token-2")

        assert exc_info.value.status_code == 401

    def test_user_without_profile_rejected(self, auth, mock_auth_client):
        signed_in(mock_auth_client, "stranger-uid")

        with pytest.raises(AuthenticationError):
            auth.require_admin("Bearer token-3")

    def test_missing_header_rejected(self, auth, mock_auth_client):
        with pytest.raises(AuthenticationError):
            auth.require_admin(None)

        mock_auth_client.auth.get_user.assert_not_called()

    def test_invalid_token_rejected(self, auth, mock_auth_client):
        mock_auth_client.auth.get_user.side_effect = Exception("invalid JWT")

        with pytest.raises(AuthenticationError) as exc_info:
            auth.require_admin("Bearer expired")

        assert exc_info.value.message == "Invalid or expired token"
