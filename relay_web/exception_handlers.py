"""Exception handlers mapping relay errors to the ``{success: false, error}`` envelope."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from relay.core.exceptions import InternalError, RelayError

_VALUE_ERROR_PREFIX = "Value error, "


def _error_response(
    status_code: int, message: str, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def _describe_validation_error(error: Dict[str, Any]) -> str:
    """Turn one pydantic error into a caller-facing sentence."""
    field = ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body")
    error_type = error.get("type", "")
    msg = str(error.get("msg", "Invalid value"))

    if error_type == "missing" or (
        error_type == "string_too_short" and error.get("ctx", {}).get("min_length") == 1
    ):
        return f"{field} is required" if field else "Request body is required"
    if error_type == "json_invalid":
        return "Request body must be valid JSON"
    if msg.startswith(_VALUE_ERROR_PREFIX):
        return msg[len(_VALUE_ERROR_PREFIX):]
    return f"{field}: {msg}" if field else msg


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Business errors carry their own status and a message safe to show callers."""
    if exc.http_status >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.to_dict()}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return _error_response(exc.http_status, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    status_code = exc.status_code
    if status_code == 404:
        message = "Endpoint not found"
    else:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    headers = getattr(exc, "headers", None) or None
    return _error_response(status_code, message, headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field as a 400."""
    errors = exc.errors()
    message = _describe_validation_error(errors[0]) if errors else "Invalid request"
    return _error_response(400, message)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    return _error_response(429, f"Rate limit exceeded: {exc.detail}")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and answer as InternalError."""
    logger.opt(exception=exc).error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}"
    )
    error = InternalError()
    return _error_response(error.http_status, error.message)


def register_exception_handlers(app: FastAPI) -> None:
    """Install every handler on the application."""
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
