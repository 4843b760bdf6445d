"""
Error types and FastAPI handlers.

Every error response has the same body:

    {"error": {"code", "message", "request_id", "details"?}, "detail": message}

plus "upgradeRequired" for plan-driven denials and "retryable" (with a
Retry-After header) when usage could not be measured.
"""

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.requests import Request

from backoffice.core.logging import LOGGER_NAME, get_request_id


logger = logging.getLogger(LOGGER_NAME)


class AppError(Exception):
    code = "app_error"
    status_code = 500
    upgrade_required = False
    retry_after: Optional[int] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id
        self.details = details

    @property
    def retryable(self) -> bool:
        return self.retry_after is not None


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class TenantContextRequiredError(AppError):
    """No tenant to evaluate against. A client error, never a policy denial."""
    code = "tenant_context_required"
    status_code = 400


class NotFoundError(AppError, LookupError):
    code = "not_found"
    status_code = 404


class ForbiddenError(AppError, PermissionError):
    code = "forbidden"
    status_code = 403


class FeatureNotAvailableError(ForbiddenError):
    """The tenant's plan or business type does not include the feature."""
    code = "feature_not_available"
    upgrade_required = True


class QuotaExceededError(ForbiddenError):
    code = "quota_exceeded"
    upgrade_required = True


class SeatLimitExceededError(QuotaExceededError):
    code = "SEAT_LIMIT_EXCEEDED"


class StorageLimitExceededError(QuotaExceededError):
    code = "STORAGE_LIMIT_EXCEEDED"
    status_code = 413


class UsageUnavailableError(AppError):
    """Live usage could not be measured; the guarded action must not proceed."""
    code = "usage_unavailable"
    status_code = 503
    retry_after = 5


def _request_id(request: Request, preferred: Optional[str] = None) -> str:
    return preferred or getattr(request.state, "request_id", None) or get_request_id() or str(uuid4())


def _error_response(
    status_code: int,
    code: str,
    message: str,
    rid: str,
    *,
    details: Optional[Dict[str, Any]] = None,
    upgrade_required: bool = False,
    retry_after: Optional[int] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message, "request_id": rid}
    if details is not None:
        error["details"] = details
    content: Dict[str, Any] = {"error": error, "detail": message}
    if upgrade_required:
        content["upgradeRequired"] = True
    if retry_after is not None:
        content["retryable"] = True

    response = JSONResponse(status_code=status_code, content=content)
    response.headers["x-request-id"] = rid
    if retry_after is not None:
        response.headers["retry-after"] = str(retry_after)
    return response


async def app_error_handler(request: Request, exc: AppError):
    rid = _request_id(request, exc.request_id)
    logger.log(
        logging.ERROR if exc.status_code >= 500 else logging.WARNING,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    return _error_response(
        exc.status_code,
        exc.code,
        exc.message,
        rid,
        details=exc.details,
        upgrade_required=exc.upgrade_required,
        retry_after=exc.retry_after,
    )


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    return _error_response(exc.status_code, code, exc.detail or "HTTP error", rid)


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _request_id(request)
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    return _error_response(500, "internal_error", "Unexpected error", rid)
