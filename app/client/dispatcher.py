"""Outbound request dispatch with the active company attached.

The company is read from the TenantContext when ``dispatch`` runs, never
when the request was scheduled. A refetch queued before a company switch
and sent after it carries the new company.
"""

import logging
from typing import Any

import httpx

from app.client.tenant_context import TenantContext

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the service."""

    def __init__(self, status_code: int, detail: str, body: Any = None) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.body = body


def raise_for_api_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if not isinstance(detail, str):
        detail = response.text or response.reason_phrase
    raise ApiError(response.status_code, detail, body)


class RequestDispatcher:
    def __init__(
        self,
        context: TenantContext,
        http: httpx.AsyncClient,
        api_token: str | None = None,
        tenant_header: str = "X-Company-Id",
    ) -> None:
        self.context = context
        self.http = http
        self.api_token = api_token
        self.tenant_header = tenant_header

    def build_headers(self, headers: Any = None) -> httpx.Headers:
        merged = httpx.Headers(headers)
        selection = self.context.current()
        if selection is not None:
            merged[self.tenant_header] = selection.tenant_id
        elif self.tenant_header in merged:
            # Only the context decides which company a request targets
            del merged[self.tenant_header]
        if self.api_token:
            merged["Authorization"] = f"Bearer {self.api_token}"
        return merged

    async def dispatch(
        self, method: str, url: str, *, headers: Any = None, **kwargs: Any
    ) -> httpx.Response:
        response = await self.http.request(
            method, url, headers=self.build_headers(headers), **kwargs
        )
        raise_for_api_error(response)
        return response
