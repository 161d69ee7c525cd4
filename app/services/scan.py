"""Scan resolution — decide where a scanned label sends the operator."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from app.core.errors import NotFound
from app.services.cages import CageCreator
from app.services.qr_store import BLANK_ROUTE, CAGE_ROUTE, QrCodeStore


@dataclass(frozen=True)
class ScanResolution:
    action: str  # "claim" or "view"
    route: str
    qr_id: uuid.UUID | None = None
    resource_id: uuid.UUID | None = None


def _trailing_uuid(payload: str, marker: str) -> uuid.UUID | None:
    _, found, tail = payload.rpartition(marker)
    if not found:
        return None
    try:
        return uuid.UUID(tail.strip("/"))
    except ValueError:
        return None


class ScanResolver:
    def __init__(self, store: QrCodeStore, cages: CageCreator) -> None:
        self.store = store
        self.cages = cages

    async def resolve(self, payload: str) -> ScanResolution:
        payload = payload.strip()

        cage_id = _trailing_uuid(payload, CAGE_ROUTE)
        if cage_id is not None:
            cage = await self.cages.get(cage_id)
            return _view(cage.id)

        qr_id = _trailing_uuid(payload, BLANK_ROUTE)
        if qr_id is None:
            # A bare code id typed in by hand
            try:
                qr_id = uuid.UUID(payload)
            except ValueError:
                raise NotFound("Unrecognised QR payload") from None

        code = await self.store.get_by_id(qr_id)
        if code.is_blank:
            return ScanResolution(
                action="claim", route=f"{BLANK_ROUTE}{code.id}", qr_id=code.id,
            )
        return _view(code.bound_resource_id, qr_id=code.id)


def _view(cage_id: uuid.UUID | None, qr_id: uuid.UUID | None = None) -> ScanResolution:
    return ScanResolution(
        action="view", route=f"{CAGE_ROUTE}{cage_id}", qr_id=qr_id, resource_id=cage_id,
    )
