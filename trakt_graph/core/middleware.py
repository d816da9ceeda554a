from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


RATE_LIMITED_PREFIXES = ("/graph/", "/stats/")


class GraphRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window limiter for the graph and stats endpoints.

    Every request to those endpoints pages through a user's Trakt history,
    so each client IP gets a fixed number of them per window.
    """

    def __init__(
        self, app, requests_per_window: int = 30, window_seconds: int = 60
    ) -> None:
        super().__init__(app)
        # Zero or negative settings are raised to 1.
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        # Request timestamps per client IP, oldest first.
        self._ip_buckets: dict[str, deque[float]] = defaultdict(deque)
        # Buckets are shared between worker threads.
        self._lock = RLock()

    @staticmethod
    def is_limited(request: Request) -> bool:
        return request.method == "GET" and request.url.path.startswith(
            RATE_LIMITED_PREFIXES
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # 1) Only the Trakt-backed endpoints count; everything else passes through.
        if not self.is_limited(request):
            return await call_next(request)

        ip = self._client_ip(request)
        now = monotonic()

        with self._lock:
            # 2) Drop timestamps that fell out of the window.
            bucket = self._ip_buckets[ip]
            cutoff = now - self.window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            # 3) Window is full: answer 429 until its oldest request expires.
            if len(bucket) >= self.max_requests:
                return self._too_many_requests(now - bucket[0])

            # 4) Record this request and hand it to the route.
            bucket.append(now)

        return await call_next(request)

    def _too_many_requests(self, oldest_age: float) -> JSONResponse:
        retry_after = max(1, int(self.window_seconds - oldest_age))
        return JSONResponse(
            status_code=429,
            content={"detail": "Too Many Requests"},
            headers={"Retry-After": str(retry_after)},
        )

    @staticmethod
    def _client_ip(request: Request) -> str:
        # Reverse proxies put the original client first in X-Forwarded-For.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
