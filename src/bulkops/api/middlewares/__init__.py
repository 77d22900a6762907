"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI

from .request_context import RequestContextMiddleware

__all__ = [
    "setup_middlewares",
    "RequestContextMiddleware",
]


def setup_middlewares(app: FastAPI) -> None:
    """Configure all application middlewares.

    Middleware order matters - the last one added is the outermost.
    """
    # Request context - tenant, user and locale for downstream calls
    app.add_middleware(RequestContextMiddleware)

    # Correlation ID - generates/propagates X-Request-ID, must wrap the request context
    app.add_middleware(CorrelationIdMiddleware)
