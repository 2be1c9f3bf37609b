from enum import Enum
from typing import Any, Dict, Optional
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    REMOTE_REJECTED = "REMOTE_REJECTED"
    CANCELLED = "CANCELLED"


class AppException(Exception):
    """Base application error carrying a message, an HTTP status and a stable code."""

    def __init__(self, message: str, *, status_code: int = 400, code: str = "APP_ERROR", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}


class ClusterError(AppException):
    """Failure of a gateway operation, tagged with its ErrorKind."""

    kind: ErrorKind = ErrorKind.REMOTE_UNAVAILABLE
    default_status = 500

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status_code=self.default_status, code=self.kind.value, details=details)


class ValidationError(ClusterError):
    """Malformed or missing request fields; raised before any remote call."""

    kind = ErrorKind.VALIDATION
    default_status = 400


class RemoteUnavailable(ClusterError):
    """The control plane could not be reached (transport, timeout, credentials)."""

    kind = ErrorKind.REMOTE_UNAVAILABLE
    default_status = 500


class RemoteRejected(ClusterError):
    """The control plane answered and declined the request."""

    kind = ErrorKind.REMOTE_REJECTED
    default_status = 500

    def __init__(self, message: str, *, remote_status: Optional[int] = None, reason: Optional[str] = None) -> None:
        details: Dict[str, Any] = {}
        if remote_status is not None:
            details["remote_status"] = remote_status
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.remote_status = remote_status
        self.reason = reason


class Cancelled(ClusterError):
    """The operation's deadline elapsed before the control plane answered."""

    kind = ErrorKind.CANCELLED
    default_status = 504


def _build_error_payload(
    *,
    message: str,
    status_code: int,
    code: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: str,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"message": message, "code": code}
    if details:
        error["details"] = details
    return {"success": False, "error": error, "request_id": request_id, "status_code": status_code}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    req_id = _request_id(request)
    payload = _build_error_payload(
        message=message, status_code=status_code, code=code, details=details, request_id=req_id
    )
    return JSONResponse(status_code=status_code, content=payload, headers={"X-Request-ID": req_id})


def register_exception_handlers(app: FastAPI) -> None:
    """Register the global handlers producing the standard error envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        logger.warning("HTTPException: status=%s path=%s", exc.status_code, request.url.path)
        return _error_response(request, status_code=exc.status_code, code="HTTP_ERROR", message=message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        # Body and query validation failures share the ValidationError contract.
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        logger.info("RequestValidationError: path=%s errors=%d", request.url.path, len(errors))
        return _error_response(
            request,
            status_code=ValidationError.default_status,
            code=ErrorKind.VALIDATION.value,
            message="Invalid request",
            details={"errors": errors},
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):  # type: ignore[override]
        logger.warning(
            "%s: status=%s code=%s path=%s message=%s",
            type(exc).__name__,
            exc.status_code,
            exc.code,
            request.url.path,
            exc.message,
        )
        return _error_response(
            request, status_code=exc.status_code, code=exc.code, message=exc.message, details=exc.details
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("UnhandledException: path=%s", request.url.path)
        return _error_response(request, status_code=500, code="INTERNAL_SERVER_ERROR", message="Internal server error")
