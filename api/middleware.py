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

    Reuses the caller's X-Request-ID when present, so a settlement can be
    traced from the calling layer through the ledger logs.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        started = time.monotonic()
        response = await call_next(request)
        logger.debug(
            "%s %s -> %d in %.1fms (request_id=%s)",
            request.method, request.url.path, response.status_code,
            (time.monotonic() - started) * 1000, request_id
        )

        response.headers["X-Request-ID"] = request_id
        return response
