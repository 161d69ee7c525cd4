"""QR code endpoints — blank minting, lookup, scanning and claiming.

Domain errors raised by the services (InvalidArgument, NotFound,
AlreadyClaimed, ValidationFailed) are translated to HTTP responses by
the handlers registered in ``app.main``.
"""

import uuid

from fastapi import APIRouter, status

from app.api.deps import Auth, Session
from app.core import cache
from app.core.config import get_settings
from app.models.cage import CageCreate
from app.models.qr_code import (
    BlankMintRequest,
    CageQrCreate,
    ClaimResponse,
    QrCodeRead,
    QrStats,
    ScanRequest,
    ScanResponse,
)
from app.services.cages import CageCreator
from app.services.claim import ClaimCoordinator
from app.services.qr_store import QrCodeStore
from app.services.scan import ScanResolver

router = APIRouter(prefix="/qr-codes", tags=["qr-codes"])


@router.post(
    "/generate-blank",
    response_model=list[QrCodeRead],
    status_code=status.HTTP_201_CREATED,
    summary="Mint a batch of blank QR codes",
)
async def generate_blank(
    body: BlankMintRequest,
    auth: Auth,
    session: Session,
) -> list[QrCodeRead]:
    """Blank codes can be printed before the cage they will label exists."""
    store = QrCodeStore(session, auth.tenant_id)
    codes = await store.mint_blank(body.count, generated_by=auth.user_id)
    cache.invalidate_stats(auth.tenant_id)
    return [QrCodeRead.model_validate(c) for c in codes]


@router.post(
    "",
    response_model=QrCodeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Mint a QR code for an existing cage",
)
async def create_cage_qr(
    body: CageQrCreate,
    auth: Auth,
    session: Session,
) -> QrCodeRead:
    store = QrCodeStore(session, auth.tenant_id)
    code = await store.mint_for_cage(body.cage_id, generated_by=auth.user_id)
    cache.invalidate_stats(auth.tenant_id)
    return QrCodeRead.model_validate(code)


@router.get("", response_model=list[QrCodeRead])
async def list_qr_codes(
    auth: Auth,
    session: Session,
    blank: bool | None = None,
) -> list[QrCodeRead]:
    store = QrCodeStore(session, auth.tenant_id)
    return [QrCodeRead.model_validate(c) for c in await store.list_codes(blank=blank)]


@router.get("/stats", response_model=QrStats)
async def qr_stats(
    auth: Auth,
    session: Session,
) -> QrStats:
    cached = cache.get_stats(auth.tenant_id, ttl=get_settings().stats_cache_ttl)
    if cached is not None:
        return cached

    stats = await QrCodeStore(session, auth.tenant_id).counts()
    cache.put_stats(auth.tenant_id, stats)
    return stats


@router.post(
    "/scan",
    response_model=ScanResponse,
    summary="Resolve a scanned payload to a claim or view route",
)
async def scan_qr_code(
    body: ScanRequest,
    auth: Auth,
    session: Session,
) -> ScanResponse:
    resolver = ScanResolver(
        QrCodeStore(session, auth.tenant_id),
        CageCreator(session, auth.tenant_id),
    )
    resolution = await resolver.resolve(body.payload)
    return ScanResponse(
        action=resolution.action,
        route=resolution.route,
        qr_id=resolution.qr_id,
        resource_id=resolution.resource_id,
    )


@router.get("/{qr_id}", response_model=QrCodeRead)
async def get_qr_code(
    qr_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> QrCodeRead:
    code = await QrCodeStore(session, auth.tenant_id).get_by_id(qr_id)
    return QrCodeRead.model_validate(code)


@router.post(
    "/{qr_id}/claim",
    response_model=ClaimResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a cage and bind the blank QR code to it",
)
async def claim_qr_code(
    qr_id: uuid.UUID,
    body: CageCreate,
    auth: Auth,
    session: Session,
) -> ClaimResponse:
    """On 409 the body carries ``bound_resource_id`` to redirect to and,
    when a cage was created before the conflict, ``orphaned_resource_id``.
    """
    coordinator = ClaimCoordinator(
        QrCodeStore(session, auth.tenant_id),
        CageCreator(session, auth.tenant_id, commit=False),
    )
    try:
        result = await coordinator.claim(qr_id, body, claimed_by=auth.user_id)
    finally:
        cache.invalidate_stats(auth.tenant_id)
    return ClaimResponse(resource_id=result.resource_id, qr_id=result.qr_id)
