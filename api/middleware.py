"""Request-scoped middleware for API requests."""

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request ID to every request.

    An incoming X-Request-ID is reused so a client can correlate its own
    retries. The id is echoed in the response header and the envelope meta.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f} ms, request_id={request_id})"
        )
        return response
