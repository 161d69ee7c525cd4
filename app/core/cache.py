"""Per-company TTL cache for QR code counts.

``GET /v1/qr-codes/stats`` reads through it; mint and claim drop the
company's entry so the next read re-counts.
"""

import time
import uuid
from typing import Any

# company id -> (stored_at, value)
_entries: dict[str, tuple[float, Any]] = {}


def _key(tenant_id: uuid.UUID | str) -> str:
    return str(tenant_id)


def get_stats(tenant_id: uuid.UUID | str, ttl: float) -> Any | None:
    """Return the cached counts for a company, or None if missing or stale."""
    entry = _entries.get(_key(tenant_id))
    if entry is None:
        return None
    stored_at, value = entry
    if time.monotonic() - stored_at > ttl:
        _entries.pop(_key(tenant_id), None)
        return None
    return value


def put_stats(tenant_id: uuid.UUID | str, value: Any) -> None:
    _entries[_key(tenant_id)] = (time.monotonic(), value)


def invalidate_stats(tenant_id: uuid.UUID | str) -> None:
    _entries.pop(_key(tenant_id), None)


def clear() -> None:
    _entries.clear()
