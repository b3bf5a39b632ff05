"""
Request ID middleware for log correlation.

Every request gets an X-Request-ID (the client's, or a new UUID). The id is
stored on request.state, echoed in the response, and bound to a context
var so every log line written while handling the request carries it.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from deepread.config import get_settings
from deepread.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and time the request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id

            extra = {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            if duration_ms > get_settings().slow_request_ms:
                logger.warning("Slow request", extra=extra)
            else:
                logger.debug("Request handled", extra=extra)
            return response
        finally:
            request_id_var.reset(token)
