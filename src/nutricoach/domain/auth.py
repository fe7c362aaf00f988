"""Domain models for authenticated sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class AuthUser:
    """Identity resolved from the auth provider."""

    id: UUID
    email: str
    name: str | None = None
    role: str = "user"
    email_verified: bool = False


@dataclass(frozen=True)
class AuthSession:
    """Resolved session attached to a request."""

    user: AuthUser
    access_token: str
    expires_at: datetime | None = None


@dataclass(frozen=True)
class SignInResult:
    """Outcome of a credential exchange with the auth provider."""

    user: AuthUser
    session: AuthSession | None


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata recorded for audit and rate limiting."""

    ip_address: str
    user_agent: str | None = None
