"""Ambient request context management using contextvars.

Stores the tenant, user and locale of the request being served. Background
stages run inside a snapshot of this context, so downstream clients stay
tenant-aware after the request has returned.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from uuid import UUID

_request_context: ContextVar["RequestContext | None"] = ContextVar(
    "request_context", default=None
)


@dataclass(frozen=True)
class RequestContext:
    """Immutable ambient context for the current request."""

    tenant_id: str | None = None
    user_id: UUID | None = None
    request_id: str | None = None
    locale: str | None = None

    def as_headers(self) -> dict[str, str]:
        """Headers that propagate this context to downstream modules."""
        headers: dict[str, str] = {}
        if self.tenant_id:
            headers["X-Tenant-Id"] = self.tenant_id
        if self.user_id:
            headers["X-User-Id"] = str(self.user_id)
        if self.request_id:
            headers["X-Request-ID"] = self.request_id
        if self.locale:
            headers["Accept-Language"] = self.locale
        return headers


def set_request_context(
    tenant_id: str | None = None,
    user_id: UUID | None = None,
    request_id: str | None = None,
    locale: str | None = None,
) -> None:
    """Set the ambient context for the current request."""
    _request_context.set(
        RequestContext(
            tenant_id=tenant_id,
            user_id=user_id,
            request_id=request_id,
            locale=locale,
        )
    )


def get_request_context() -> RequestContext | None:
    """Get the current ambient context."""
    return _request_context.get()


def clear_request_context() -> None:
    """Clear the ambient context."""
    _request_context.set(None)
