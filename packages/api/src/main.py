# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from db import get_db_service
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .core.errors import (
    AuthenticationError,
    AuthorizationError,
    ClearanceError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .routes import admin, applications, health
from .schemas.error import ErrorResponse, FieldErrorItem
from .services.storage import build_storage_service
from .services.template import build_template_source

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    app.state.storage = build_storage_service(settings)
    app.state.template = build_template_source(settings)
    yield
    await get_db_service().close()


_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}

# Most specific first; InvalidTransitionError falls through to ConflictError
_ERROR_STATUS: list[tuple[type[ClearanceError], int]] = [
    (AuthenticationError, 401),
    (AuthorizationError, 404),
    (NotFoundError, 404),
    (ValidationError, 422),
    (ConflictError, 409),
    (UpstreamError, 502),
]


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


def _build_error(status_code: int, detail: str, request_id: str, **extra) -> ErrorResponse:
    return ErrorResponse(
        type="about:blank",
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request_id,
        **extra,
    )


def _respond(body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=body.status,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def _field_name(loc: tuple) -> str:
    """Turn a pydantic error location into the offending form field name."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and framework exceptions to RFC 7807 responses."""

    @app.exception_handler(ClearanceError)
    async def clearance_error_handler(request: Request, exc: ClearanceError):
        request_id = _request_id(request)
        status_code = next(
            (code for cls, code in _ERROR_STATUS if isinstance(exc, cls)),
            500,
        )
        extra: dict = {}
        headers = None
        detail = str(exc)
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        elif isinstance(exc, ValidationError):
            extra["errors"] = [FieldErrorItem(field=e.field, message=e.message) for e in exc.errors]
        elif isinstance(exc, UpstreamError):
            logger.error("Upstream failure (request_id=%s): %s", request_id, exc)
            if exc.application_id is not None:
                extra["application_id"] = str(exc.application_id)
            if exc.status is not None:
                extra["application_status"] = getattr(exc.status, "value", str(exc.status))
        return _respond(_build_error(status_code, detail, request_id, **extra), headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Convert HTTPException to RFC 7807 Problem Details."""
        body = _build_error(exc.status_code, str(exc.detail), _request_id(request))
        return _respond(body, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Reshape pydantic request errors into the same field error list."""
        errors = [
            FieldErrorItem(field=_field_name(tuple(err.get("loc", ()))), message=err.get("msg", ""))
            for err in exc.errors()
        ]
        body = _build_error(422, "Request validation failed", _request_id(request), errors=errors)
        return _respond(body)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Catch-all for unhandled exceptions -- log and return 500."""
        request_id = _request_id(request)
        logger.exception("Unhandled exception (request_id=%s)", request_id)
        return _respond(_build_error(500, "An unexpected error occurred.", request_id))


def create_app() -> FastAPI:
    app = FastAPI(
        title="Gate Clearance API",
        description="Visitor gate clearance applications and CDCR 2311 form generation",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Content-Disposition", "X-Skipped-Fields"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint"""
        return {"message": "Gate Clearance API"}

    return app


app = create_app()
