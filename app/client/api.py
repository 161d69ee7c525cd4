"""Typed operator client for the CageTrack service.

Wraps the RequestDispatcher and maps error responses back onto the
domain errors in ``app.core.errors`` so callers can route a failed claim
to the right recovery view (the bound cage, or manual reconciliation of
an orphaned one).
"""

from __future__ import annotations

import uuid
from typing import Any

import httpx

from app.client.config import ClientSettings, get_client_settings
from app.client.dispatcher import ApiError, RequestDispatcher
from app.client.invalidation import InvalidationBus
from app.client.query_cache import QueryCache
from app.client.storage import FileSessionStorage, MemorySessionStorage, SessionStorage
from app.client.tenant_context import TenantContext
from app.core.errors import (
    AlreadyClaimed,
    CageTrackError,
    InvalidArgument,
    NotFound,
    ValidationFailed,
)
from app.models.cage import CageCreate, CageRead
from app.models.qr_code import ClaimResponse, QrCodeRead, QrStats, ScanResponse
from app.models.tenant import TenantRead


def _uuid_or_none(value: Any) -> uuid.UUID | None:
    return uuid.UUID(value) if value else None


def _format_field_errors(errors: list[Any]) -> str:
    messages = []
    for err in errors:
        if not isinstance(err, dict):
            continue
        # Drop the leading "body" / "query" segment of the location
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        msg = err.get("msg", "invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages) or "Invalid request"


def to_domain_error(exc: ApiError) -> CageTrackError | ApiError:
    """Translate an HTTP error into the matching domain error, if any."""
    body = exc.body if isinstance(exc.body, dict) else {}
    code = body.get("code")
    if code == AlreadyClaimed.code:
        return AlreadyClaimed(
            uuid.UUID(body["qr_id"]),
            _uuid_or_none(body.get("bound_resource_id")),
            orphaned_resource_id=_uuid_or_none(body.get("orphaned_resource_id")),
        )
    if code == NotFound.code:
        return NotFound(exc.detail)
    if code == InvalidArgument.code:
        return InvalidArgument(exc.detail)
    if code == ValidationFailed.code:
        return ValidationFailed(exc.detail)
    if exc.status_code == 422 and isinstance(body.get("detail"), list):
        # Request-body validation failures reported by FastAPI
        return ValidationFailed(_format_field_errors(body["detail"]))
    return exc


class CageTrackClient:
    def __init__(
        self,
        dispatcher: RequestDispatcher,
        cache: QueryCache,
        context: TenantContext,
        settings: ClientSettings | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.cache = cache
        self.context = context
        self.settings = settings or get_client_settings()

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings | None = None,
        storage: SessionStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CageTrackClient:
        settings = settings or get_client_settings()
        if storage is None:
            storage = (
                FileSessionStorage(settings.session_file)
                if settings.session_file
                else MemorySessionStorage()
            )
        bus = InvalidationBus()
        context = TenantContext(storage, bus)
        http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.timeout,
            transport=transport,
        )
        dispatcher = RequestDispatcher(
            context,
            http,
            api_token=settings.api_token or None,
            tenant_header=settings.tenant_header,
        )
        return cls(dispatcher, QueryCache(dispatcher, bus), context, settings)

    async def aclose(self) -> None:
        self.cache.close()
        await self.dispatcher.http.aclose()

    async def __aenter__(self) -> CageTrackClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── Company view ──────────────────────────────────────────

    async def list_companies(self) -> list[TenantRead]:
        data = await self._cached("/v1/tenants")
        return [TenantRead.model_validate(t) for t in data]

    async def view_as(self, company: TenantRead) -> None:
        await self.context.enter(str(company.id), company.name)

    async def exit_company_view(self) -> None:
        await self.context.exit()

    # ── QR codes ──────────────────────────────────────────────

    async def mint_blank(self, count: int) -> list[QrCodeRead]:
        low, high = self.settings.min_blank_batch, self.settings.max_blank_batch
        if not low <= count <= high:
            raise InvalidArgument(f"Count must be between {low} and {high}")
        data = await self._send("POST", "/v1/qr-codes/generate-blank", json={"count": count})
        self._invalidate_qr_queries()
        return [QrCodeRead.model_validate(c) for c in data]

    async def get_qr_code(self, qr_id: uuid.UUID) -> QrCodeRead:
        return QrCodeRead.model_validate(await self._send("GET", f"/v1/qr-codes/{qr_id}"))

    async def list_qr_codes(self) -> list[QrCodeRead]:
        data = await self._cached("/v1/qr-codes")
        return [QrCodeRead.model_validate(c) for c in data]

    async def qr_stats(self) -> QrStats:
        return QrStats.model_validate(await self._cached("/v1/qr-codes/stats"))

    async def scan(self, payload: str) -> ScanResponse:
        data = await self._send("POST", "/v1/qr-codes/scan", json={"payload": payload})
        return ScanResponse.model_validate(data)

    async def claim(self, qr_id: uuid.UUID, cage: CageCreate) -> ClaimResponse:
        """Create a cage from ``cage`` and bind the blank code to it.

        Raises AlreadyClaimed with ``bound_resource_id`` to redirect to, and
        ``orphaned_resource_id`` when this call created a cage that lost
        the binding race.
        """
        try:
            data = await self._send(
                "POST", f"/v1/qr-codes/{qr_id}/claim", json=cage.model_dump(mode="json"),
            )
        finally:
            self._invalidate_qr_queries()
            self.cache.invalidate("/v1/cages")
        return ClaimResponse.model_validate(data)

    # ── Cages ─────────────────────────────────────────────────

    async def list_cages(self) -> list[CageRead]:
        data = await self._cached("/v1/cages")
        return [CageRead.model_validate(c) for c in data]

    async def get_cage(self, cage_id: uuid.UUID) -> CageRead:
        return CageRead.model_validate(await self._send("GET", f"/v1/cages/{cage_id}"))

    # ── Internal helpers ──────────────────────────────────────

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.dispatcher.dispatch(method, url, **kwargs)
        except ApiError as exc:
            error = to_domain_error(exc)
            if error is exc:
                raise
            raise error from exc
        return response.json()

    async def _cached(self, path: str) -> Any:
        try:
            return await self.cache.fetch(path)
        except ApiError as exc:
            error = to_domain_error(exc)
            if error is exc:
                raise
            raise error from exc

    def _invalidate_qr_queries(self) -> None:
        self.cache.invalidate("/v1/qr-codes")
        self.cache.invalidate("/v1/qr-codes/stats")
