"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nutricoach.api.auth import router as auth_router
from nutricoach.api.meals import router as meals_router
from nutricoach.api.middleware import RouteGuardMiddleware
from nutricoach.api.nutrition import router as nutrition_router
from nutricoach.api.summaries import router as summaries_router
from nutricoach.api.user import router as user_router
from nutricoach.app_logging import configure_logging
from nutricoach.containers import AppContainer
from nutricoach.errors import AppError, BadRequestError


def _error_body(code: str, message: str, **extra: object) -> dict[str, object]:
    return {"error": {"code": code, "message": message, **extra}}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting in %s environment", container.settings.environment)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(RouteGuardMiddleware)

    for router in (
        auth_router,
        user_router,
        meals_router,
        nutrition_router,
        summaries_router,
    ):
        app.include_router(router)

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            _error_body(exc.code, exc.message), status_code=exc.status_code
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = BadRequestError("Invalid input")
        return JSONResponse(
            _error_body(
                error.code,
                error.message,
                issues=jsonable_encoder(exc.errors(), exclude={"input", "ctx"}),
            ),
            status_code=error.status_code,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        error = AppError()
        return JSONResponse(
            _error_body(error.code, error.message), status_code=error.status_code
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
