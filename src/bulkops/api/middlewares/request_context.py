"""Request context middleware.

Captures tenant, user, locale and request id of every request into the
ambient request context and the structlog context. Background stages
dispatched while serving the request inherit both.
"""

from uuid import UUID

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.bulkops.core import logging as log_context
from src.bulkops.core.request_context import clear_request_context, set_request_context

TENANT_HEADER = "x-tenant-id"
USER_HEADER = "x-user-id"


def _parse_user_id(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that initializes the request-scoped context.

    Context is automatically cleared after request processing.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Clear any stale context
        clear_request_context()
        log_context.clear_request_context()

        try:
            request_id = correlation_id.get()
            tenant_id = request.headers.get(TENANT_HEADER)
            user_id = _parse_user_id(request.headers.get(USER_HEADER))

            set_request_context(
                tenant_id=tenant_id,
                user_id=user_id,
                request_id=request_id,
                locale=request.headers.get("accept-language"),
            )
            log_context.bind_request_context(request_id, tenant_id=tenant_id, user_id=user_id)

            return await call_next(request)
        finally:
            clear_request_context()
            log_context.clear_request_context()
