"""
Admin authentication.

Bearer tokens are Supabase access tokens. The token is validated against
Supabase auth, then the caller's users row must carry role "admin".
"""

from dataclasses import dataclass
from typing import Optional
import structlog

from config import get_auth_client, get_supabase_client
from exceptions import AuthenticationError

logger = structlog.get_logger(__name__)


ADMIN_ROLE = "admin"


@dataclass
class AdminUser:
    auth_user_id: str
    role: str


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an "Authorization: Bearer <token>" header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


class AuthService:
    """Validates tokens and checks the admin role."""

    def __init__(self, auth_client=None, db=None):
        self.auth_client = auth_client or get_auth_client()
        self.db = db or get_supabase_client()

    def require_admin(self, authorization: Optional[str]) -> AdminUser:
        """
        Raises:
            AuthenticationError: Missing/invalid token or non-admin user
        """
        token = bearer_token(authorization)
        if not token:
            raise AuthenticationError("Missing bearer token")

        try:
            response = self.auth_client.auth.get_user(token)
        except Exception as e:
            logger.info("auth_token_rejected", error=str(e))
            raise AuthenticationError("Invalid or expired token") from e

        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError("Invalid or expired token")

        profile = (
            self.db.table("users")
            .select("role")
            .eq("auth_user_id", user.id)
            .limit(1)
            .execute()
        )
        role = profile.data[0].get("role") if profile.data else None

        if role != ADMIN_ROLE:
            logger.warning("auth_not_admin", auth_user_id=user.id, role=role)
            raise AuthenticationError()

        return AdminUser(auth_user_id=user.id, role=role)


def get_auth_service() -> AuthService:
    return AuthService()
