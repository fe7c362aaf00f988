"""Authentication flows delegated to the external auth provider."""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from nutricoach.domain.auth import AuthSession, AuthUser, ClientInfo, SignInResult
from nutricoach.errors import (
    BadRequestError,
    FeatureNotImplementedError,
    RateLimitedError,
    UnauthorizedError,
)
from nutricoach.services.audit import AuditService

DELETE_CONFIRMATION = "DELETE MY ACCOUNT"
SIGN_UP_ATTEMPT = "sign_up_attempt"

_logger = logging.getLogger(__name__)

_MOBILE_PATTERN = re.compile(r"Mobile|Android|iPhone|iPad|iPod", re.IGNORECASE)
_IOS_PATTERN = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)
_DESKTOP_NAMES = (("mac", "Mac"), ("windows", "Windows PC"), ("linux", "Linux PC"))


class AuthGateway(Protocol):
    """Session issuance and validation provided by the auth service."""

    def get_user(self, access_token: str) -> AuthUser | None:
        """Return the user for a valid access token."""

    def sign_up(self, email: str, password: str, name: str) -> SignInResult:
        """Register credentials; the session is None until the email is verified."""

    def sign_in(self, email: str, password: str) -> SignInResult | None:
        """Exchange credentials for a session; None when they are rejected."""

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""

    def delete_user(self, user_id: UUID) -> None:
        """Delete the account; owned rows cascade."""


class SecurityRepository(Protocol):
    """Persistence for login attempts and known devices."""

    def count_failed_attempts(self, email: str, since: datetime) -> int:
        """Return failed sign-in attempts for an email since a moment."""

    def count_signup_attempts(self, ip_address: str, since: datetime) -> int:
        """Return sign-up attempts made from an address since a moment."""

    def record_login_attempt(
        self, email: str, client: ClientInfo, success: bool
    ) -> None:
        """Store a sign-in attempt."""

    def touch_device(
        self,
        user_id: UUID,
        fingerprint: str,
        device_name: str,
        device_type: str,
    ) -> None:
        """Create or refresh a device fingerprint for a user."""


@dataclass
class AuthService:
    """Coordinates sign-up, sign-in, rate limits and auditing."""

    gateway: AuthGateway
    security: SecurityRepository
    audit: AuditService
    max_failed_attempts: int = 5
    login_window_minutes: int = 5
    max_signups: int = 3
    signup_window_minutes: int = 60

    def resolve_session(self, access_token: str | None) -> AuthSession | None:
        """Return the session for an access token, or None when invalid."""
        if not access_token:
            return None
        user = self.gateway.get_user(access_token)
        if user is None:
            return None
        return AuthSession(user=user, access_token=access_token)

    def sign_up(
        self, name: str, email: str, password: str, client: ClientInfo
    ) -> SignInResult:
        """Create an account when the sign-up rate limit allows it.

        Every request counts toward the limit, including the ones the auth
        service rejects. Without a session the returned user may be a
        placeholder for an already registered email, so its id is kept out of
        the audit row's user reference.
        """
        email = email.strip().lower()
        since = datetime.now(tz=UTC) - timedelta(minutes=self.signup_window_minutes)
        attempts = self.security.count_signup_attempts(client.ip_address, since)
        if attempts >= self.max_signups:
            raise RateLimitedError()
        self.audit.record(
            SIGN_UP_ATTEMPT,
            entity_type="auth",
            metadata={"email": email},
            client=client,
        )
        result = self.gateway.sign_up(email, password, name)
        self.audit.record(
            "sign_up",
            user_id=result.user.id if result.session is not None else None,
            entity_type="user",
            entity_id=str(result.user.id),
            metadata={"requires_verification": result.session is None},
            client=client,
        )
        return result

    def sign_in(
        self,
        email: str,
        password: str,
        client: ClientInfo,
        device_fingerprint: str | None = None,
    ) -> AuthSession:
        """Verify credentials and return a new session."""
        email = email.strip().lower()
        since = datetime.now(tz=UTC) - timedelta(minutes=self.login_window_minutes)
        failed = self.security.count_failed_attempts(email, since)
        if failed >= self.max_failed_attempts:
            self.audit.record(
                "auth_error",
                entity_type="auth",
                metadata={"error": "rate_limited", "email": email},
                client=client,
            )
            raise RateLimitedError()

        result = self.gateway.sign_in(email, password)
        success = result is not None and result.session is not None
        self.security.record_login_attempt(email, client, success)
        if result is None:
            self.audit.record(
                "auth_error",
                entity_type="auth",
                metadata={"error": "invalid_credentials", "email": email},
                client=client,
            )
            raise UnauthorizedError("Invalid email or password")
        if result.session is None:
            raise UnauthorizedError("Email address is not verified")

        device_type, device_name = describe_device(client.user_agent)
        if device_fingerprint:
            self.security.touch_device(
                result.user.id, device_fingerprint, device_name, device_type
            )
        self.audit.record(
            "sign_in",
            user_id=result.user.id,
            entity_type="session",
            metadata={"device_type": device_type, "device_name": device_name},
            client=client,
        )
        return result.session

    def sign_out(self, session: AuthSession, client: ClientInfo) -> None:
        """Revoke the current session."""
        self.gateway.sign_out(session.access_token)
        self.audit.record(
            "sign_out", user_id=session.user.id, entity_type="session", client=client
        )

    def delete_account(
        self, session: AuthSession, confirmation: str, client: ClientInfo
    ) -> None:
        """Delete the caller's account and every row it owns."""
        if confirmation != DELETE_CONFIRMATION:
            raise BadRequestError("Invalid confirmation")
        self.audit.record(
            "account_deleted",
            user_id=session.user.id,
            entity_type="user",
            entity_id=str(session.user.id),
            client=client,
        )
        self.gateway.delete_user(session.user.id)
        _logger.info("Account deleted: user_id=%s", session.user.id)

    def update_email(self, session: AuthSession, new_email: str) -> None:
        """Change the account email."""
        raise FeatureNotImplementedError("Email update not yet implemented")

    def update_password(self, session: AuthSession, new_password: str) -> None:
        """Change the account password."""
        raise FeatureNotImplementedError("Password update not yet implemented")


def describe_device(user_agent: str | None) -> tuple[str, str]:
    """Return a coarse (device_type, device_name) pair for a user agent."""
    if not user_agent:
        return "unknown", "Unknown Device"
    if _MOBILE_PATTERN.search(user_agent):
        if _IOS_PATTERN.search(user_agent):
            return "mobile", "iOS Device"
        if "android" in user_agent.lower():
            return "mobile", "Android Device"
        return "mobile", "Mobile Device"
    if "tablet" in user_agent.lower():
        return "tablet", "Tablet"
    for marker, name in _DESKTOP_NAMES:
        if marker in user_agent.lower():
            return "desktop", name
    return "desktop", "Unknown Device"
