"""Request ID middleware — unique ID per request for tracing.

Learn: Every request gets an ID, either from the incoming X-Request-ID
header or a fresh UUID. It is bound to structlog's contextvars so it
shows up in every log line for that request (including auth rejections
and store outages), and echoed back in the response header.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, path=request.url.path
        )

        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
