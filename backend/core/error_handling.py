# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
The one place where errors become HTTP responses.

Every failure leaves the API as::

    {"success": false, "error": {"code": "<MACHINE_CODE>", "message": "..."}}

Unexpected exceptions are logged with their traceback; the client only sees
the exception text when ``settings.debug`` is on.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import Settings
from core.errors import ApiError, AuthErrorKind


def error_response(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    # Only field locations are echoed – never the submitted values (passwords).
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.append(".".join(loc) or "body")
    return "Invalid request: " + ", ".join(sorted(set(fields))) if fields else "Invalid request"


def register_exception_handlers(app: FastAPI, settings: Settings, logger: logging.Logger) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        err = exc.error
        headers = None
        if err.http_status == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        if err.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, err.kind.tag)
        return error_response(err.http_status, err.code, err.public_message, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        kind = AuthErrorKind.BAD_REQUEST
        return error_response(kind.http_status, kind.code, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = {
            status.HTTP_404_NOT_FOUND: "NOT_FOUND",
            status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
        }.get(exc.status_code, "HTTP_ERROR")
        return error_response(exc.status_code, code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        kind = AuthErrorKind.INTERNAL
        message = f"{type(exc).__name__}: {exc}" if settings.debug else kind.default_message
        return error_response(kind.http_status, kind.code, message)
