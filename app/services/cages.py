"""Cage creation and lookup — the resource side of a QR claim."""

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFound, ValidationFailed
from app.models.cage import Cage, CageCreate

logger = logging.getLogger(__name__)


class CageCreator:
    """Creates cages inside one tenant scope.

    With ``commit=False`` a new cage is only flushed, so the caller's next
    commit (the QR binding during a claim) makes both visible together.
    """

    def __init__(self, session: AsyncSession, tenant_id: uuid.UUID, commit: bool = True) -> None:
        self.session = session
        self.tenant_id = tenant_id
        self.commit = commit

    async def create(self, spec: CageCreate) -> Cage:
        # Cage numbers are unique within a company
        stmt = select(Cage).where(
            Cage.tenant_id == self.tenant_id,
            Cage.cage_number == spec.cage_number,
        )
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none():
            raise ValidationFailed(f"Cage number '{spec.cage_number}' already exists")

        cage = Cage(tenant_id=self.tenant_id, **spec.model_dump())
        self.session.add(cage)
        try:
            if self.commit:
                await self.session.commit()
            else:
                await self.session.flush()
        except IntegrityError as exc:
            # Another writer took the number after the check above
            await self.session.rollback()
            raise ValidationFailed(
                f"Cage number '{spec.cage_number}' already exists"
            ) from exc

        if self.commit:
            await self.session.refresh(cage)
        logger.info("Created cage %s (%s) for tenant %s", cage.id, cage.cage_number, self.tenant_id)
        return cage

    async def get(self, cage_id: uuid.UUID) -> Cage:
        cage = await self.session.get(Cage, cage_id)
        if cage is None or cage.tenant_id != self.tenant_id:
            raise NotFound(f"Cage {cage_id} not found")
        return cage

    async def list_active(self) -> list[Cage]:
        stmt = (
            select(Cage)
            .where(Cage.tenant_id == self.tenant_id, Cage.is_active.is_(True))  # type: ignore[attr-defined]
            .order_by(Cage.cage_number.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
