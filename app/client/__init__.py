"""Operator-side client: tenant context, request dispatch and query cache."""

from app.client.api import CageTrackClient
from app.client.dispatcher import ApiError, RequestDispatcher
from app.client.invalidation import InvalidationBus
from app.client.query_cache import QueryCache
from app.client.storage import FileSessionStorage, MemorySessionStorage, SessionStorage
from app.client.tenant_context import TenantContext, TenantSelection

__all__ = [
    "ApiError",
    "CageTrackClient",
    "FileSessionStorage",
    "InvalidationBus",
    "MemorySessionStorage",
    "QueryCache",
    "RequestDispatcher",
    "SessionStorage",
    "TenantContext",
    "TenantSelection",
]
