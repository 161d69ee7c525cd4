"""Active-company selection for an operator session.

Mutation order is the contract here. ``enter`` and ``exit`` write session
storage first, then the in-memory selection, and only then broadcast
invalidation. Anything that refetches in reaction to the broadcast
therefore sees the new company, and ``current()`` never disagrees with
what is stored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from app.client.invalidation import InvalidationBus
from app.client.storage import SessionStorage
from app.core.errors import InvalidArgument

logger = logging.getLogger(__name__)

STORAGE_KEY = "activeCompany"


@dataclass(frozen=True)
class TenantSelection:
    tenant_id: str
    tenant_name: str

    def to_json(self) -> str:
        return json.dumps({"id": self.tenant_id, "name": self.tenant_name})

    @classmethod
    def from_json(cls, raw: str) -> TenantSelection:
        data = json.loads(raw)
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("stored company selection has no id")
        return cls(tenant_id=str(data["id"]), tenant_name=str(data.get("name") or ""))


class TenantContext:
    """Single writer of the active company; inject it, do not share globals."""

    def __init__(self, storage: SessionStorage, bus: InvalidationBus) -> None:
        self._storage = storage
        self._bus = bus
        self._selection = self._load()

    def _load(self) -> TenantSelection | None:
        raw = self._storage.get(STORAGE_KEY)
        if raw is None:
            return None
        try:
            return TenantSelection.from_json(raw)
        except ValueError:
            logger.warning("Ignoring corrupt company selection in session storage")
            # Keep storage and memory in agreement
            self._storage.remove(STORAGE_KEY)
            return None

    def current(self) -> TenantSelection | None:
        return self._selection

    @property
    def is_in_company_view(self) -> bool:
        return self._selection is not None

    async def enter(self, tenant_id: str, tenant_name: str) -> None:
        if not tenant_id:
            raise InvalidArgument("tenant_id is required to enter a company view")
        selection = TenantSelection(tenant_id=str(tenant_id), tenant_name=tenant_name)

        self._storage.set(STORAGE_KEY, selection.to_json())
        self._selection = selection
        logger.info("Entered company view %s (%s)", selection.tenant_id, tenant_name)

        await self._bus.invalidate_all()

    async def exit(self) -> None:
        self._storage.remove(STORAGE_KEY)
        self._selection = None
        logger.info("Exited company view")

        await self._bus.invalidate_all()
