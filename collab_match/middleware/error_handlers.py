"""
Request middleware for the matching API: request ids, error mapping and timing
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError

from collab_match.utils.exceptions import CollabMatchBaseException, map_to_http_exception
from collab_match.utils.logging_config import get_logger

logger = get_logger(__name__)

QUIET_PATHS = {"/", "/health"}


def _request_extra(request: Request, **extra) -> dict:
    return {
        "request_id": getattr(request.state, "request_id", "unknown"),
        "method": request.method,
        "path": request.url.path,
        **extra,
    }


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and turns exceptions into JSON error responses"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except CollabMatchBaseException as exc:
            logger.error(
                f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
                extra=_request_extra(request, error_code=exc.error_code, details=exc.details)
            )
            http_exc = map_to_http_exception(exc)
            return self._error_response(request_id, http_exc.status_code, http_exc.detail)

        except RequestValidationError as exc:
            logger.error(
                f"Request validation failed in {request.method} {request.url.path}",
                extra=_request_extra(request, validation_errors=exc.errors())
            )
            return self._error_response(request_id, 422, {
                "error": "Validation failed",
                "message": "Request data validation failed",
                "validation_errors": exc.errors(),
            })

        except ValidationError as exc:
            # stored documents that no longer fit the record models
            logger.error(
                f"Record validation failed in {request.method} {request.url.path}: {exc}",
                extra=_request_extra(request, validation_errors=exc.errors())
            )
            return self._error_response(request_id, 400, {
                "error": "Data validation failed",
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False, include_context=False),
            })

        except HTTPException as exc:
            logger.warning(
                f"HTTP {exc.status_code} in {request.method} {request.url.path}: {exc.detail}",
                extra=_request_extra(request)
            )
            return self._error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {exc}",
                extra=_request_extra(
                    request,
                    exception_type=exc.__class__.__name__,
                    traceback=traceback.format_exc(),
                ),
                exc_info=True
            )
            return self._error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            })

    @staticmethod
    def _error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
        if not isinstance(detail, dict):
            detail = {"message": str(detail)}

        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "timestamp": datetime.utcnow().isoformat(),
                "request_id": request_id,
                "status_code": status_code,
                **detail
            },
            headers={"X-Request-ID": request_id}
        )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and processing time"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.time()
        logger.debug(
            f"Request: {request.method} {request.url}",
            extra=_request_extra(
                request,
                query_params=dict(request.query_params),
                client_ip=request.client.host if request.client else "unknown",
            )
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {time.time() - start_time:.3f}s",
                extra=_request_extra(request, exception=str(exc))
            )
            raise

        processing_time = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra=_request_extra(request, status_code=response.status_code, processing_time=processing_time)
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Flags slow requests and reports processing time in a header"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra=_request_extra(
                    request, processing_time=processing_time, threshold=self.slow_request_threshold
                )
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
