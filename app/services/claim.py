"""Claim coordinator — create a resource and bind a blank QR code to it.

Flow:
  1. Read the code; unknown → NotFound, already bound → AlreadyClaimed
  2. Create the resource through the ResourceCreator; a validation failure
     on a code that is bound by now is reported as AlreadyClaimed
  3. Bind the code with QrCodeStore.mark_claimed (the serialization point)
  4. If binding loses a race, surface the freshly created resource as
     ``orphaned_resource_id`` on the AlreadyClaimed error

Creation is optimistic and is never rolled back here: deleting a cage is
the resource owner's concern, so the orphan is reported to the caller for
manual reconciliation. Nothing is retried.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

from app.core.errors import AlreadyClaimed, ValidationFailed
from app.models.cage import Cage, CageCreate
from app.services.qr_store import QrCodeStore

logger = logging.getLogger(__name__)


class ResourceCreator(Protocol):
    async def create(self, spec: CageCreate) -> Cage: ...


@dataclass(frozen=True)
class ClaimResult:
    resource_id: uuid.UUID
    qr_id: uuid.UUID


class ClaimCoordinator:
    def __init__(self, store: QrCodeStore, creator: ResourceCreator) -> None:
        self.store = store
        self.creator = creator

    async def claim(
        self,
        qr_id: uuid.UUID,
        resource_spec: CageCreate,
        claimed_by: uuid.UUID | None = None,
    ) -> ClaimResult:
        code = await self.store.get_by_id(qr_id)
        if not code.is_blank:
            raise AlreadyClaimed(qr_id, code.bound_resource_id)

        try:
            resource = await self.creator.create(resource_spec)
        except ValidationFailed:
            # A concurrent claim with the same cage number may have bound the code
            code = await self.store.get_by_id(qr_id)
            if not code.is_blank:
                raise AlreadyClaimed(qr_id, code.bound_resource_id) from None
            raise

        try:
            await self.store.mark_claimed(qr_id, resource.id, claimed_by=claimed_by)
        except AlreadyClaimed as exc:
            logger.warning(
                "Lost claim race for QR code %s; cage %s is orphaned", qr_id, resource.id
            )
            raise AlreadyClaimed(
                qr_id,
                exc.bound_resource_id,
                orphaned_resource_id=resource.id,
            ) from exc

        logger.info("QR code %s claimed by cage %s", qr_id, resource.id)
        return ClaimResult(resource_id=resource.id, qr_id=qr_id)
