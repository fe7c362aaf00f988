"""Per-request context handed to API handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import Depends, Request

from nutricoach.domain.auth import AuthSession, ClientInfo
from nutricoach.errors import UnauthorizedError

if TYPE_CHECKING:
    from nutricoach.containers import AppContainer

_BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class RequestContext:
    """Container, resolved session and client metadata for one request."""

    container: AppContainer
    session: AuthSession | None
    client: ClientInfo

    @property
    def user_id(self) -> UUID:
        """Return the session user id; only valid on protected routes."""
        if self.session is None:
            raise UnauthorizedError()
        return self.session.user.id

    def timezone(self) -> str:
        """Return the timezone used for this user's calendar days."""
        return self.container.user_service.get_timezone(self.user_id)


def bearer_token(request: Request) -> str | None:
    """Return the token from an Authorization: Bearer header."""
    header = request.headers.get("authorization")
    if header and header.lower().startswith(_BEARER_PREFIX):
        return header[len(_BEARER_PREFIX) :].strip() or None
    return None


def access_token(request: Request) -> str | None:
    """Return the bearer token or, failing that, the session cookie."""
    container: AppContainer = request.app.state.container
    return bearer_token(request) or request.cookies.get(
        container.settings.session_cookie_name
    )


def resolve_session(request: Request) -> AuthSession | None:
    """Resolve the session once per request and cache it on request.state."""
    if hasattr(request.state, "auth_session"):
        return request.state.auth_session
    container: AppContainer = request.app.state.container
    session = container.auth_service.resolve_session(access_token(request))
    request.state.auth_session = session
    return session


def client_info(request: Request) -> ClientInfo:
    """Return caller address and user agent, honouring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (
            request.client.host if request.client else "unknown"
        )
    return ClientInfo(
        ip_address=ip_address, user_agent=request.headers.get("user-agent")
    )


def get_context(request: Request) -> RequestContext:
    """Build the context for public procedures."""
    return RequestContext(
        container=request.app.state.container,
        session=resolve_session(request),
        client=client_info(request),
    )


def get_user_context(
    context: RequestContext = Depends(get_context),
) -> RequestContext:
    """Build the context for protected procedures."""
    if context.session is None:
        raise UnauthorizedError()
    return context
