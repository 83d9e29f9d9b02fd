"""FastAPI application factory and main entrypoint."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from api.config import get_settings
from api.exceptions import LaunchPilotError
from api.logging import setup_logging
from api.metrics import MetricsMiddleware
from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routers import health, v1
from api.schemas.responses import ErrorDetail, ErrorResponse
from api.sentry import init_sentry

setup_logging()
logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    init_sentry()
    logger.info("api_starting", env=settings.env, debug=settings.debug, version=API_VERSION)
    yield
    logger.info("api_shutting_down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="LaunchPilot Site Analyzer",
        description="Website audits reconciled into durable improvement tasks",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # First added = last executed; CORS must process first
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(v1.router, prefix="/v1")
    return app


def _error_body(
    code: str, message: str, details: dict | None = None, field: str | None = None
) -> dict:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, field=field, details=details or None)
    )
    return body.model_dump(exclude_none=True)


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(LaunchPilotError)
    async def launchpilot_error_handler(request: Request, exc: LaunchPilotError) -> ORJSONResponse:
        logger.warning(
            "application_error",
            error_code=exc.code,
            message=exc.message,
            path=request.url.path,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        errors = exc.errors()
        first_error = errors[0] if errors else {"msg": "Validation error"}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        logger.warning("request_validation_failed", path=request.url.path, field=field)
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                "validation_error",
                first_error.get("msg", "Validation error"),
                {"field": field or None, "errors": [str(e.get("msg")) for e in errors]},
                field=field or None,
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.error(
            "unhandled_exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("internal_error", "An unexpected error occurred"),
        )


app = create_app()
