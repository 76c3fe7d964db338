"""Headers attached to every HTTP response."""

from __future__ import annotations

from typing import Callable, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class DefaultHeadersMiddleware(BaseHTTPMiddleware):
    """Set headers the handler did not set itself."""

    def __init__(self, app, *, headers: Dict[str, str]) -> None:
        super().__init__(app)
        self.headers = headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
