"""Request ID and timing middleware.

Provides:
- RequestIDMiddleware: tags every request with a UUID for log traceability.
- RequestTimingMiddleware: measures request duration and warns on slow requests.
"""

import logging
import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Digest requests wait on two model calls, so "slow" is generous here
SLOW_REQUEST_THRESHOLD_MS = 5000.0


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, honouring an inbound ``X-Request-ID`` header.

    The ID is stored on ``request.state.request_id`` and echoed in the
    ``X-Request-ID`` response header.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Add ``X-Response-Time`` and log slow requests."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        start = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000.0
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        request_id = getattr(request.state, "request_id", "unknown")
        if duration_ms >= SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                "Slow request: %s %s completed in %.2f ms [request_id=%s, status=%d]",
                request.method,
                request.url.path,
                duration_ms,
                request_id,
                response.status_code,
            )
        else:
            logger.debug(
                "%s %s completed in %.2f ms [request_id=%s, status=%d]",
                request.method,
                request.url.path,
                duration_ms,
                request_id,
                response.status_code,
            )
        return response
