# src/duty_admin/utils/error_handler.py
from __future__ import annotations

import logging
import inspect
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.duty_admin.utils.errors import DomainError

logger = logging.getLogger("fastapi")


# ----------------------------------------
# LOW-SPAM TRACE HELPER (logs only key points)
# ----------------------------------------
def _trace(msg: str) -> None:
    """
    Low-spam trace with the file+line of the call-site that triggered _trace().
    Use only at decision/return points.
    """
    f = inspect.currentframe()
    if f and f.f_back:
        c = f.f_back
        logger.debug("[TRACE] %s:%s | %s", c.f_code.co_filename, c.f_lineno, msg)
    else:
        logger.debug("[TRACE] <unknown> | %s", msg)


def _safe_args(exc: Exception) -> str:
    a = getattr(exc, "args", None)
    return str(a) if a else "No additional details"


def _json_error(
    status_code: int,
    message: str,
    exc: Exception,
    extra: Dict[str, Any] | None = None,
) -> JSONResponse:
    """
    Unified JSON error response.
    Generic statuses get a fixed user-facing message; domain errors keep theirs.
    """
    user_message = message
    if not isinstance(exc, DomainError):
        if status_code == 401:
            user_message = "Your session has timed out for security reasons. Please log in again."
        elif status_code == 403:
            user_message = "Access denied. You do not have permission to access this resource."
        elif status_code == 404:
            user_message = "The requested resource was not found."
        elif status_code == 500:
            user_message = "Internal Server Error. Please try again later."

    payload: Dict[str, Any] = {
        "success": False,
        "message": user_message,
        "error_type": exc.__class__.__name__,
        "status_code": status_code,
    }

    if extra:
        payload.update(extra)

    _trace(f"RETURN JSONResponse | status={status_code} message={user_message!r}")
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _log_http(request: Request, status_code: int, detail: str, exc: Exception) -> None:
    """
    Log levels:
    - 404 -> INFO (normal noise)
    - 401/403/409/423 -> WARNING (auth, scope, locks and races)
    - other 4xx -> ERROR (client error worth checking)
    - 5xx -> EXCEPTION (stack trace)
    """
    url = str(request.url)
    method = request.method

    if status_code == 404:
        logger.info("404 Not Found: %s %s | detail=%s", method, url, detail)
        return

    if status_code in (401, 403, 409, 423):
        logger.warning("%s: %s %s | detail=%s", status_code, method, url, detail)
        return

    if 400 <= status_code < 500:
        logger.error(
            "%s: %s %s | detail=%s | args=%s",
            status_code,
            method,
            url,
            detail,
            _safe_args(exc),
        )
        return

    logger.exception("%s: %s %s | detail=%s", status_code, method, url, detail)


async def custom_exception_handler(request: Request, exc: Exception):
    """
    Single handler registered for every exception family the API surfaces.
    Routes never catch domain errors themselves; they land here.
    """

    _trace(f"ENTER handler | path={request.url.path} method={request.method} exc={exc.__class__.__name__}")

    # -----------------------------
    # 1) Domain errors (ValidationFailed, Locked, Conflict, ScopeMismatch, NotFound)
    # -----------------------------
    if isinstance(exc, DomainError):
        _trace(f"BRANCH DomainError | status={exc.status_code} message={exc.message!r}")
        _log_http(request, exc.status_code, exc.message, exc)
        return _json_error(status_code=exc.status_code, message=exc.message, exc=exc)

    # -----------------------------
    # 2) HTTPException (routing 404, auth 401, FastAPI raises)
    # -----------------------------
    if isinstance(exc, StarletteHTTPException):
        status = int(exc.status_code)
        detail = str(exc.detail)

        _trace(f"BRANCH HTTPException | status={status} detail={detail!r}")
        _log_http(request, status, detail, exc)
        return _json_error(status_code=status, message=detail, exc=exc)

    # -----------------------------
    # 3) Validation error
    # -----------------------------
    if isinstance(exc, RequestValidationError):
        _trace("BRANCH RequestValidationError (422)")
        logger.warning(
            "422 Validation error: %s %s | %s",
            request.method,
            str(request.url),
            exc.errors(),
        )
        return _json_error(
            status_code=422,
            message="Validation error occurred",
            exc=exc,
            extra={"validation_errors": exc.errors()},
        )

    # -----------------------------
    # 4) Any other unexpected exception
    # -----------------------------
    _trace("BRANCH Unhandled exception (500)")
    logger.exception("500 Unhandled exception: %s %s | %s", request.method, str(request.url), str(exc))
    return _json_error(
        status_code=500,
        message="Internal Server Error. Please try again later.",
        exc=exc,
    )
