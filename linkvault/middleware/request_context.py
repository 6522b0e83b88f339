"""Request context middleware: request id, timing and the access log line.

- Generates or propagates the ``X-Request-ID`` header and publishes it to
  ``request_id_var`` so every log record of the request carries it.
- Measures request duration and returns it as ``X-Response-Time``.
- Logs every request/response as one structured record.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

# Probes hit these constantly; keep them out of the INFO log.
_QUIET_PATHS = frozenset({"/", "/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Single middleware handling request-id, timing and request logging."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        token = request_id_var.set(rid)

        try:
            start = time.monotonic()
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)

            response.headers["X-Request-ID"] = rid
            response.headers["X-Response-Time"] = f"{duration_ms}ms"

            log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
            log(
                f"{request.method} {request.url.path} {response.status_code}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            return response
        finally:
            request_id_var.reset(token)
