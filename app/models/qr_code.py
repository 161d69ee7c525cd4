"""QR code model — a printable identity that is blank until claimed."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class QrCode(TimestampMixin, SQLModel, table=True):
    """A minted QR identity.

    ``is_blank`` and ``bound_resource_id`` move together: a code is blank
    exactly while it has no bound cage. The only transition is blank →
    bound, performed once by ``QrCodeStore.mark_claimed``.
    """

    __tablename__ = "qr_codes"
    __table_args__ = (
        CheckConstraint(
            "(is_blank AND bound_resource_id IS NULL) "
            "OR (NOT is_blank AND bound_resource_id IS NOT NULL)",
            name="ck_qr_codes_blank_binding",
        ),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)

    # Opaque string encoded into the printed symbol; never rewritten
    payload: str = Field(sa_column=Column(Text, nullable=False, index=True))

    is_blank: bool = Field(default=True, nullable=False, index=True)
    bound_resource_id: uuid.UUID | None = Field(
        default=None, foreign_key="cages.id", nullable=True, index=True,
    )

    generated_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    claimed_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    claimed_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class BlankMintRequest(SQLModel):
    # Range is enforced by the store so that rejection is a domain error
    count: int = 1


class CageQrCreate(SQLModel):
    cage_id: uuid.UUID


class QrCodeRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    payload: str
    is_blank: bool
    bound_resource_id: uuid.UUID | None
    generated_by: uuid.UUID | None
    claimed_by: uuid.UUID | None
    claimed_at: datetime | None
    created_at: datetime


class QrStats(SQLModel):
    total: int
    blank: int
    claimed: int


class ClaimResponse(SQLModel):
    resource_id: uuid.UUID
    qr_id: uuid.UUID


class ScanRequest(SQLModel):
    payload: str


class ScanResponse(SQLModel):
    action: str
    route: str
    qr_id: uuid.UUID | None = None
    resource_id: uuid.UUID | None = None
