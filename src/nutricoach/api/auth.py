"""Authentication procedures and session cookie handling."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, Response
from pydantic import EmailStr  # noqa: TC002

from nutricoach.api.context import RequestContext, get_context, get_user_context
from nutricoach.api.models import (
    DeleteAccountInput,
    SignInInput,
    SignUpInput,
    UpdateEmailInput,
    UpdatePasswordInput,
)
from nutricoach.config import enabled_providers

if TYPE_CHECKING:
    from nutricoach.config import Settings
    from nutricoach.domain.auth import AuthSession, AuthUser

router = APIRouter(prefix="/api/auth", tags=["auth"])

_DEFAULT_COOKIE_MAX_AGE = 60 * 60 * 24 * 7


def _user_payload(user: AuthUser) -> dict[str, object]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "email_verified": user.email_verified,
    }


def _set_session_cookie(
    response: Response, settings: Settings, session: AuthSession
) -> None:
    max_age = _DEFAULT_COOKIE_MAX_AGE
    if session.expires_at is not None:
        remaining = int((session.expires_at - datetime.now(tz=UTC)).total_seconds())
        max_age = max(remaining, 0)
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        max_age=max_age,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
        path="/",
    )


def _clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


@router.get("/get-session")
def get_session(context: RequestContext = Depends(get_context)) -> dict[str, object]:
    """Return the current session, or null."""
    session = context.session
    if session is None:
        return {"session": None}
    return {
        "session": {
            "user": _user_payload(session.user),
            "expires_at": session.expires_at,
        }
    }


@router.post("/sign-up")
def sign_up(
    payload: SignUpInput,
    response: Response,
    context: RequestContext = Depends(get_context),
) -> dict[str, object]:
    """Create an account; a session is issued once the email is verified."""
    result = context.container.auth_service.sign_up(
        payload.name, payload.email, payload.password, context.client
    )
    if result.session is not None:
        _set_session_cookie(response, context.container.settings, result.session)
    return {
        "user": _user_payload(result.user),
        "requires_verification": result.session is None,
    }


@router.post("/sign-in")
def sign_in(
    payload: SignInInput,
    response: Response,
    context: RequestContext = Depends(get_context),
) -> dict[str, object]:
    """Verify credentials and set the session cookie."""
    session = context.container.auth_service.sign_in(
        payload.email,
        payload.password,
        context.client,
        device_fingerprint=payload.device_fingerprint,
    )
    _set_session_cookie(response, context.container.settings, session)
    return {"user": _user_payload(session.user), "expires_at": session.expires_at}


@router.post("/sign-out")
def sign_out(
    response: Response,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Revoke the session and clear the cookie."""
    context.container.auth_service.sign_out(context.session, context.client)
    _clear_session_cookie(response, context.container.settings)
    return {"success": True}


@router.post("/delete-account")
def delete_account(
    payload: DeleteAccountInput,
    response: Response,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Delete the account and all of its data."""
    context.container.auth_service.delete_account(
        context.session, payload.confirmation, context.client
    )
    _clear_session_cookie(response, context.container.settings)
    return {"success": True}


@router.post("/update-email")
def update_email(
    payload: UpdateEmailInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Change the account email."""
    context.container.auth_service.update_email(context.session, payload.new_email)
    return {"success": True}


@router.post("/update-password")
def update_password(
    payload: UpdatePasswordInput,
    context: RequestContext = Depends(get_user_context),
) -> dict[str, bool]:
    """Change the account password."""
    context.container.auth_service.update_password(
        context.session, payload.new_password
    )
    return {"success": True}


@router.get("/providers")
def providers(context: RequestContext = Depends(get_context)) -> dict[str, object]:
    """Return the enabled sign-in methods."""
    return {
        "providers": enabled_providers(context.container.settings),
        "password_enabled": True,
    }


@router.get("/check-email")
def check_email_availability(
    email: EmailStr = Query(),
    context: RequestContext = Depends(get_context),
) -> dict[str, bool]:
    """Return whether an email can be used for a new account."""
    return {"available": context.container.user_service.is_email_available(email)}
