"""QR code store — durable QR identities and their claim state.

A store instance is bound to one session and one tenant scope; every
lookup and write is filtered by that tenant, so a code minted by one
company is invisible to another.

``mark_claimed`` is the single serialization point for a code: it is a
conditional UPDATE guarded by ``is_blank``, so concurrent claims of the
same code are linearized by the database and exactly one of them
observes the blank row.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import case, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import AlreadyClaimed, InvalidArgument, NotFound
from app.models.base import new_uuid, utcnow
from app.models.cage import Cage
from app.models.qr_code import QrCode, QrStats

logger = logging.getLogger(__name__)

BLANK_ROUTE = "/qr/blank/"
CAGE_ROUTE = "/qr/cage/"


def blank_payload(qr_id: uuid.UUID) -> str:
    """Payload printed on a blank label; derived from the code id only."""
    return f"{get_settings().public_base_url.rstrip('/')}{BLANK_ROUTE}{qr_id}"


def cage_payload(cage_id: uuid.UUID) -> str:
    return f"{get_settings().public_base_url.rstrip('/')}{CAGE_ROUTE}{cage_id}"


class QrCodeStore:
    def __init__(self, session: AsyncSession, tenant_id: uuid.UUID) -> None:
        self.session = session
        self.tenant_id = tenant_id

    async def mint_blank(
        self, count: int, generated_by: uuid.UUID | None = None
    ) -> list[QrCode]:
        """Create ``count`` blank codes and return them in creation order."""
        settings = get_settings()
        if not settings.min_blank_batch <= count <= settings.max_blank_batch:
            raise InvalidArgument(
                f"Count must be between {settings.min_blank_batch} "
                f"and {settings.max_blank_batch}"
            )

        codes = []
        for _ in range(count):
            qr_id = new_uuid()
            codes.append(QrCode(
                id=qr_id,
                tenant_id=self.tenant_id,
                payload=blank_payload(qr_id),
                generated_by=generated_by,
            ))
        self.session.add_all(codes)
        await self.session.commit()

        logger.info("Minted %d blank QR codes for tenant %s", count, self.tenant_id)
        return codes

    async def mint_for_cage(
        self, cage_id: uuid.UUID, generated_by: uuid.UUID | None = None
    ) -> QrCode:
        """Create an already-bound code for an existing cage (label reprint)."""
        cage = await self.session.get(Cage, cage_id)
        if cage is None or cage.tenant_id != self.tenant_id:
            raise NotFound(f"Cage {cage_id} not found")

        now = utcnow()
        code = QrCode(
            tenant_id=self.tenant_id,
            payload=cage_payload(cage_id),
            is_blank=False,
            bound_resource_id=cage_id,
            generated_by=generated_by,
            claimed_by=generated_by,
            claimed_at=now,
        )
        self.session.add(code)
        await self.session.commit()
        return code

    async def get_by_id(self, qr_id: uuid.UUID) -> QrCode:
        code = await self._fetch(QrCode.id == qr_id)
        if code is None:
            raise NotFound(f"QR code {qr_id} not found")
        return code

    async def get_by_payload(self, payload: str) -> QrCode:
        code = await self._fetch(QrCode.payload == payload)
        if code is None:
            raise NotFound("No QR code matches the scanned payload")
        return code

    async def list_codes(self, blank: bool | None = None) -> list[QrCode]:
        stmt = select(QrCode).where(QrCode.tenant_id == self.tenant_id)
        if blank is not None:
            stmt = stmt.where(QrCode.is_blank.is_(blank))  # type: ignore[attr-defined]
        stmt = stmt.order_by(QrCode.created_at.desc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def counts(self) -> QrStats:
        stmt = select(
            func.count(QrCode.id),
            func.sum(case((QrCode.is_blank.is_(True), 1), else_=0)),  # type: ignore[attr-defined]
        ).where(QrCode.tenant_id == self.tenant_id)
        total, blank = (await self.session.execute(stmt)).one()
        total = total or 0
        blank = blank or 0
        return QrStats(total=total, blank=blank, claimed=total - blank)

    async def mark_claimed(
        self,
        qr_id: uuid.UUID,
        resource_id: uuid.UUID,
        claimed_by: uuid.UUID | None = None,
    ) -> QrCode:
        """Bind a blank code to ``resource_id``.

        Raises AlreadyClaimed (with the existing binding) when the code is
        no longer blank, and NotFound when it does not exist in this tenant.
        """
        now = utcnow()
        stmt = (
            update(QrCode)
            .where(
                QrCode.id == qr_id,
                QrCode.tenant_id == self.tenant_id,
                QrCode.is_blank.is_(True),  # type: ignore[attr-defined]
            )
            .values(
                is_blank=False,
                bound_resource_id=resource_id,
                claimed_by=claimed_by,
                claimed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount != 1:
            # Nothing was written; end the transaction without expiring loaded rows
            await self.session.commit()
            existing = await self._fetch(QrCode.id == qr_id)
            if existing is None:
                raise NotFound(f"QR code {qr_id} not found")
            logger.warning(
                "QR code %s already bound to %s; rejected binding to %s",
                qr_id, existing.bound_resource_id, resource_id,
            )
            raise AlreadyClaimed(qr_id, existing.bound_resource_id)

        await self.session.commit()
        return await self.get_by_id(qr_id)

    # ── Internal helper ───────────────────────────────────────

    async def _fetch(self, criterion) -> QrCode | None:
        stmt = (
            select(QrCode)
            .where(criterion, QrCode.tenant_id == self.tenant_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
