"""Access log and request metrics."""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from friends_directory.utils.monitoring import observe_request

logger = logging.getLogger("friends_directory.api")


class LoggingMiddleware(BaseHTTPMiddleware):
    """One ``request.completed`` record and one metrics sample per HTTP request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        path = request.url.path
        observe_request(request.method, path, response.status_code, elapsed)
        logger.info(
            "request.completed",
            extra={
                "method": request.method,
                "path": path,
                "query": str(request.query_params),
                "status": response.status_code,
                "duration_ms": round(elapsed * 1000, 2),
                "peer": request.client.host if request.client else None,
            },
        )
        return response
