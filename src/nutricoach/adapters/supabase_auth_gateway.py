"""Supabase Auth gateway for session issuance and validation."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import AuthApiError, AuthError, Client

from nutricoach.domain.auth import AuthSession, AuthUser, SignInResult
from nutricoach.errors import BadRequestError, UnauthorizedError
from nutricoach.services.auth import AuthGateway

_logger = logging.getLogger(__name__)

_EMAIL_NOT_CONFIRMED = "email_not_confirmed"


@dataclass
class SupabaseAuthGateway(AuthGateway):
    """Auth gateway backed by Supabase Auth.

    ``client`` is built with the anon key and never persists a session, so one
    instance can serve every request. ``admin`` uses the service key for
    sign-out and account deletion.
    """

    client: Client
    admin: Client

    def get_user(self, access_token: str) -> AuthUser | None:
        """Return the user for a valid access token."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as exc:
            _logger.info("Rejected access token: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return _to_auth_user(response.user)

    def sign_up(self, email: str, password: str, name: str) -> SignInResult:
        """Register credentials with the auth service."""
        try:
            response = self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"name": name}},
                }
            )
        except AuthApiError as exc:
            raise BadRequestError(exc.message) from exc
        if response.user is None:
            raise BadRequestError("Sign up failed")
        user = _to_auth_user(response.user)
        return SignInResult(user=user, session=_to_session(user, response.session))

    def sign_in(self, email: str, password: str) -> SignInResult | None:
        """Exchange credentials for a session."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthApiError as exc:
            if exc.code == _EMAIL_NOT_CONFIRMED:
                raise UnauthorizedError("Email address is not verified") from exc
            return None
        if response.user is None:
            return None
        user = _to_auth_user(response.user)
        return SignInResult(user=user, session=_to_session(user, response.session))

    def sign_out(self, access_token: str) -> None:
        """Revoke every refresh token behind an access token."""
        self.admin.auth.admin.sign_out(access_token)

    def delete_user(self, user_id: UUID) -> None:
        """Delete the auth user; public rows cascade from auth.users."""
        self.admin.auth.admin.delete_user(str(user_id))


def _to_auth_user(user: object) -> AuthUser:
    metadata = getattr(user, "user_metadata", None) or {}
    app_metadata = getattr(user, "app_metadata", None) or {}
    return AuthUser(
        id=UUID(str(user.id)),
        email=str(user.email or ""),
        name=metadata.get("name"),
        role=str(app_metadata.get("role") or "user"),
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
    )


def _to_session(user: AuthUser, session: object | None) -> AuthSession | None:
    if session is None:
        return None
    expires_at = getattr(session, "expires_at", None)
    return AuthSession(
        user=user,
        access_token=session.access_token,
        expires_at=(
            datetime.fromtimestamp(expires_at, tz=UTC) if expires_at else None
        ),
    )
