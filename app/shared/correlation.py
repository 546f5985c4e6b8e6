"""
Correlation IDs for tracing a sync end to end.

Every HTTP request and every migration run gets one ID, stored in a context
variable so that the logging filter can stamp it on each record emitted by
the orchestrator, the index manager and the agent synchronizer.

Usage:
    # In main.py:
    app.add_middleware(CorrelationMiddleware)

    # Outside a request (migration runs, scripts):
    with CorrelationContext(prefix="migration") as run_id:
        await runner.run()
"""

import uuid
import contextvars
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


_correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

# Checked in order on inbound requests
CORRELATION_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
]

RESPONSE_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id_ctx.get()


def generate_correlation_id(prefix: Optional[str] = None) -> str:
    """Short UUID4-based ID, optionally prefixed (e.g. ``migration-1a2b3c4d``)."""
    short = str(uuid.uuid4())[:8]
    return f"{prefix}-{short}" if prefix else short


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's correlation ID or mint one, and echo it back."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        correlation_id = None
        for header in CORRELATION_HEADERS:
            correlation_id = request.headers.get(header)
            if correlation_id:
                break

        if not correlation_id:
            correlation_id = generate_correlation_id()

        request.state.correlation_id = correlation_id
        token = _correlation_id_ctx.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers[RESPONSE_HEADER] = correlation_id
            return response
        finally:
            _correlation_id_ctx.reset(token)


class CorrelationContext:
    """
    Context manager for setting a correlation ID outside a request.

    Example:
        with CorrelationContext(prefix="migration") as run_id:
            logger.info("Starting backfill")  # Will include correlation_id
    """

    def __init__(self, correlation_id: Optional[str] = None, prefix: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id(prefix)
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _correlation_id_ctx.reset(self._token)
