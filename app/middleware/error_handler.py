"""
Global error handling middleware.

A store read that fails outside a hierarchy load (the farm lookup) surfaces
here. It is reported as a gateway error: the request itself was fine, the
farm backend behind this service was not. The status the backend answered
with, if any, is passed along as `upstreamStatus`.
"""
import logging
from typing import Callable, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.document_store import FetchFailure


logger = logging.getLogger(__name__)

GATEWAY_STATUSES = {
    status.HTTP_502_BAD_GATEWAY,
    status.HTTP_503_SERVICE_UNAVAILABLE,
    status.HTTP_504_GATEWAY_TIMEOUT,
}


def store_failure_response(failure: FetchFailure) -> JSONResponse:
    """Translate a FetchFailure into a gateway error response."""
    if failure.status_code in GATEWAY_STATUSES:
        status_code = failure.status_code
        upstream_status: Optional[int] = None
    else:
        status_code = status.HTTP_502_BAD_GATEWAY
        upstream_status = failure.status_code

    return JSONResponse(
        status_code=status_code,
        content={
            "error": "Document store error",
            "detail": failure.message,
            "upstreamStatus": upstream_status,
        }
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turns store failures and unexpected errors into JSON responses."""

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)

        except FetchFailure as e:
            logger.error(
                f"Store read failed on {request.method} {request.url.path}: {e.message}"
            )
            return store_failure_response(e)

        except Exception:
            logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "detail": "An unexpected error occurred",
                }
            )
