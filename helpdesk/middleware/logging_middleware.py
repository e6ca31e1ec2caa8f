"""
Logging Middleware - Request/Response logging
"""
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

# Liveness probes hit this constantly
QUIET_PATHS = {"/api/health"}

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request and its response

    Logs:
    - Request method, path, query and client
    - Response status code and duration
    - Unhandled errors with traceback

    Echoes (or assigns) an X-Request-ID and sets X-Process-Time on responses.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path.rstrip("/") in QUIET_PATHS:
            return await call_next(request)

        start_time = time.time()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        method = request.method
        path = request.url.path

        logger.info(
            f"→ {method} {path} [{request_id}]",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "query_params": dict(request.query_params),
                "client": request.client.host if request.client else "unknown",
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"✗ {method} {path} [{request_id}] ERROR ({duration_ms}ms): {e}",
                extra={"request_id": request_id, "path": path, "duration_ms": duration_ms},
                exc_info=True
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"← {method} {path} {response.status_code} [{request_id}] ({duration_ms}ms)",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
        )

        response.headers["X-Process-Time"] = str(duration_ms)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
