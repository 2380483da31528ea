"""Rate limiting middleware — fixed window counters in the key-value store.

Learn: Each client IP gets one counter per bucket, rate_limit:<bucket>:<ip>,
created on the first hit with a 60s TTL. Auth endpoints (login,
register, refresh) share a stricter bucket to slow down credential
stuffing.

KeyValueStore.increment_counter degrades to "not limited" when Redis
is down, so an outage never blocks traffic here.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

WINDOW_SECONDS = 60

AUTH_PATHS = (
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/api/v1/auth/refresh",
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP request limits per minute, split into auth and api buckets."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        store = getattr(request.app.state, "store", None)
        if store is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_auth = request.url.path.startswith(AUTH_PATHS)
        limit = self.auth_rpm if is_auth else self.default_rpm
        bucket = "auth" if is_auth else "api"

        result = await store.increment_counter(
            f"rate_limit:{bucket}:{client_ip}", WINDOW_SECONDS, limit
        )
        headers = {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_seconds),
        }
        if result.limited:
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "message": "Rate limit exceeded. Try again later.",
                    "code": "RateLimited",
                },
                headers={**headers, "Retry-After": str(result.reset_seconds or WINDOW_SECONDS)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
