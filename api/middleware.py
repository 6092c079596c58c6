"""Request-scoped middleware for API requests."""

from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a unique request ID to every request.

    Honors an incoming X-Request-ID so callers can correlate polls across
    services; otherwise a fresh UUID is generated.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def get_request_id(request: Request) -> str | None:
    """Request ID set by RequestIDMiddleware, if the middleware is installed."""
    return getattr(request.state, "request_id", None)
