"""Cage model — the physical resource a QR label gets bound to."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import field_validator
from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class RoomNumber(StrEnum):
    BB00028 = "BB00028"
    ZRC_C61 = "ZRC-C61"
    ZRC_SC14 = "ZRC-SC14"


class CageStatus(StrEnum):
    ACTIVE = "Active"
    BREEDING = "Breeding"
    HOLDING = "Holding"


class Cage(TimestampMixin, SQLModel, table=True):
    __tablename__ = "cages"
    __table_args__ = (UniqueConstraint("tenant_id", "cage_number"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)

    cage_number: str = Field(max_length=64, nullable=False, index=True)
    room_number: RoomNumber = Field(default=RoomNumber.BB00028)
    location: str = Field(default="", max_length=255)
    capacity: int = Field(default=5)
    status: CageStatus = Field(default=CageStatus.ACTIVE)
    notes: str | None = Field(default=None, sa_column=Column(Text))
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class CageCreate(SQLModel):
    cage_number: str = Field(max_length=64)
    room_number: RoomNumber = RoomNumber.BB00028
    location: str = Field(default="", max_length=255)
    capacity: int = Field(default=5, ge=1, le=100)
    status: CageStatus = CageStatus.ACTIVE
    notes: str | None = None
    is_active: bool = True

    @field_validator("cage_number")
    @classmethod
    def _cage_number_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Cage number is required")
        return value


class CageRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    cage_number: str
    room_number: RoomNumber
    location: str
    capacity: int
    status: CageStatus
    notes: str | None
    is_active: bool
    created_at: datetime
