"""Route guard redirecting between protected pages and auth pages."""

import logging
from urllib.parse import quote

from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from nutricoach.api.context import bearer_token, resolve_session
from nutricoach.errors import UnauthorizedError

PROTECTED_PATHS = ("/dashboard", "/profile", "/settings", "/meals", "/goals")
AUTH_PATHS = ("/login", "/register", "/forgot-password", "/reset-password")
DEFAULT_AFTER_LOGIN = "/dashboard"

_logger = logging.getLogger(__name__)


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in prefixes)


def _safe_redirect_target(value: str | None) -> str:
    """Only allow same-site relative targets."""
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return DEFAULT_AFTER_LOGIN


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Keeps anonymous users off protected pages and signed-in users off auth pages."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path

        if _matches(path, PROTECTED_PATHS):
            try:
                session = await run_in_threadpool(resolve_session, request)
            except Exception:
                _logger.exception("Session lookup failed for %s", path)
                return RedirectResponse("/login", status_code=307)
            if session is None:
                return RedirectResponse(
                    f"/login?from={quote(path, safe='/')}", status_code=307
                )
            request.scope["headers"] = [
                *request.scope["headers"],
                (b"x-user-id", str(session.user.id).encode()),
            ]
            return await call_next(request)

        if _matches(path, AUTH_PATHS):
            session = await run_in_threadpool(resolve_session, request)
            if session is not None:
                target = _safe_redirect_target(request.query_params.get("from"))
                return RedirectResponse(target, status_code=307)
            return await call_next(request)

        if (
            path.startswith("/api/")
            and not _matches(path, ("/api/auth",))
            and bearer_token(request)
        ):
            session = await run_in_threadpool(resolve_session, request)
            if session is None:
                error = UnauthorizedError("Invalid or expired token")
                return JSONResponse(
                    {"error": {"code": error.code, "message": error.message}},
                    status_code=error.status_code,
                )

        return await call_next(request)
