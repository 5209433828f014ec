"""
Exception handlers - map the domain exception hierarchy to HTTP responses

Every error body has the same shape:
    {"success": false, "error": "<message>", "code": "<CODE>"}
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import get_logger
from exceptions import (
    AuthorizationError,
    ConflictError,
    DatabaseError,
    MovieNightError,
    NotFoundError,
    ValidationError,
)
from server.metrics import metrics

logger = get_logger(__name__).bind(component="api")

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ConflictError, 400),
    (AuthorizationError, 401),
    (NotFoundError, 404),
    (DatabaseError, 500),
)


def status_for(error: MovieNightError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


def _first_validation_message(error: RequestValidationError) -> str:
    errors = error.errors()
    if not errors:
        return "invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI):
    """Register exception handlers with the FastAPI app"""

    @app.exception_handler(MovieNightError)
    async def handle_movienight_error(request: Request, exc: MovieNightError):
        status_code = status_for(exc)
        if status_code >= 500:
            metrics.record_error("api", exc)
            logger.error("request failed", path=request.url.path, error=str(exc), code=exc.code)
            return JSONResponse(
                status_code=status_code,
                content={"success": False, "error": "internal server error", "code": exc.code},
            )
        logger.info("request rejected", path=request.url.path, error=exc.message, code=exc.code)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        error = ValidationError(_first_validation_message(exc))
        logger.info("request body rejected", path=request.url.path, error=error.message)
        return JSONResponse(status_code=400, content=error.to_dict())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        metrics.record_error("api", exc)
        logger.error(
            "unhandled error",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "internal server error", "code": "INTERNAL_ERROR"},
        )
