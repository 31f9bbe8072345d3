import logging
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.salestrack.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


def _mark_error(request: Request, code: str, exc: Exception) -> None:
    request.state.error_code = code
    request.state.error_class = exc.__class__.__name__


def _record_idempotency_failure(request: Request, status_code: int, body: dict) -> None:
    context = getattr(request.state, "idempotency", None)
    if context is None:
        return
    context.record_failure(status_code=status_code, response_body=body)


def _json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, Exception):
        return str(value)
    return value


def _validation_details(exc: RequestValidationError) -> dict:
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        field = ".".join(str(part) for part in loc if part not in {"body", "query", "path", "header"}) or None
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "loc": loc,
                "ctx": _json_safe(error.get("ctx")),
            }
        )
    return {"errors": errors}


def error_body(request: Request, definition: ErrorDefinition, details: object = None) -> dict:
    return {
        "code": definition.code,
        "message": definition.message,
        "details": _json_safe(details),
        "trace_id": _trace_id(request),
    }


def _respond(request: Request, exc: Exception, status_code: int, body: dict) -> JSONResponse:
    _mark_error(request, body["code"], exc)
    _record_idempotency_failure(request, status_code, body)
    return JSONResponse(status_code=status_code, content=body)


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        body = error_body(request, exc.error, exc.details)
        return _respond(request, exc, exc.error.status_code, body)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        details = None
        message = str(detail) if detail is not None else "HTTP error"
        if isinstance(detail, dict):
            message = str(detail.get("message", message))
            details = {key: value for key, value in detail.items() if key != "message"} or None
        body = {
            "code": _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR"),
            "message": message,
            "details": details,
            "trace_id": _trace_id(request),
        }
        return _respond(request, exc, exc.status_code, body)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body = error_body(request, ErrorCatalog.VALIDATION_ERROR, _validation_details(exc))
        return _respond(request, exc, ErrorCatalog.VALIDATION_ERROR.status_code, body)

    @app.exception_handler(OperationalError)
    async def database_error_handler(request: Request, exc: OperationalError):
        logger.exception("Database operation failed")
        body = error_body(request, ErrorCatalog.DB_UNAVAILABLE, {"type": exc.__class__.__name__})
        return _respond(request, exc, ErrorCatalog.DB_UNAVAILABLE.status_code, body)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error")
        body = error_body(request, ErrorCatalog.INTERNAL_ERROR, {"type": exc.__class__.__name__})
        return _respond(request, exc, ErrorCatalog.INTERNAL_ERROR.status_code, body)
