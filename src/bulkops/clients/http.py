"""Shared HTTP client for downstream modules.

The client is lazily created on first use and reused thereafter. Every
request carries the ambient request context, including requests sent from
background stages.
"""

import httpx

from src.bulkops.core.config import get_settings
from src.bulkops.core.logging import get_logger
from src.bulkops.core.request_context import get_request_context

logger = get_logger(__name__)

_client: httpx.AsyncClient | None = None


async def stamp_request_context(request: httpx.Request) -> None:
    """Copy tenant, user, request id and locale onto an outgoing request."""
    context = get_request_context()
    if context is None:
        return
    for name, value in context.as_headers().items():
        request.headers.setdefault(name, value)


def build_http_client(
    base_url: str, timeout: float, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        transport=transport,
        event_hooks={"request": [stamp_request_context]},
    )


def get_http_client() -> httpx.AsyncClient:
    """Get the shared downstream HTTP client."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = build_http_client(settings.downstream_url, settings.http_timeout_seconds)
        logger.info("HTTP client created", base_url=settings.downstream_url)
    return _client


async def close_http_client() -> None:
    """Close the shared HTTP client. Call during shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
