"""
Request context middleware.
Tags every request with an ID, times it and logs slow requests.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from roomfinder.services.error_handler import ErrorHandlerService

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Stamps a request ID on request.state and on the response headers,
    along with the processing time.
    """

    def __init__(
        self,
        app: ASGIApp,
        slow_request_threshold: float = 2.0,
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request with a request ID and timing.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response object
        """
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.perf_counter()

        if self.enable_request_logging:
            logger.info(
                f"Request [{request_id}]: {request.method} {request.url.path}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "client_ip": request.client.host if request.client else "unknown",
                }
            )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Middleware error [{request_id}]: {type(exc).__name__} - {str(exc)}",
                extra={"request_id": request_id, "path": request.url.path, "method": request.method},
                exc_info=True
            )
            response = ErrorHandlerService.handle_unexpected_error(exc, request)

        processing_time = time.perf_counter() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request [{request_id}]: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method,
                    "processing_time": processing_time,
                    "status_code": response.status_code,
                }
            )
        elif self.enable_request_logging:
            logger.info(f"Response [{request_id}]: {response.status_code} - {processing_time:.3f}s")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.4f}"
        return response
