"""Cages — the view a bound QR label routes to, plus direct creation."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import Auth, Session
from app.models.cage import CageCreate, CageRead
from app.services.cages import CageCreator

router = APIRouter(prefix="/cages", tags=["cages"])


@router.post("", response_model=CageRead, status_code=status.HTTP_201_CREATED)
async def create_cage(
    body: CageCreate,
    auth: Auth,
    session: Session,
) -> CageRead:
    cage = await CageCreator(session, auth.tenant_id).create(body)
    return CageRead.model_validate(cage)


@router.get("", response_model=list[CageRead])
async def list_cages(
    auth: Auth,
    session: Session,
) -> list[CageRead]:
    cages = await CageCreator(session, auth.tenant_id).list_active()
    return [CageRead.model_validate(c) for c in cages]


@router.get("/{cage_id}", response_model=CageRead)
async def get_cage(
    cage_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> CageRead:
    cage = await CageCreator(session, auth.tenant_id).get(cage_id)
    return CageRead.model_validate(cage)
