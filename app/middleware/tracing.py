import logging
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Request-ID"


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Middleware for request tracing and correlation IDs."""

    def __init__(self, app: ASGIApp, trace_header: str = TRACE_HEADER):
        super().__init__(app)
        self.trace_header = trace_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Get or generate trace ID
        trace_id = request.headers.get(self.trace_header) or str(uuid.uuid4())

        # Store trace ID in request state
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers[self.trace_header] = trace_id

        logger.debug(f"Request {trace_id}: {request.method} {request.url.path}")

        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Middleware for request timing and performance monitoring."""

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Stripe gives up on a webhook delivery that is slow to answer
        if process_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} "
                f"took {process_time:.2f}s (trace_id: {getattr(request.state, 'trace_id', None)})"
            )

        return response
