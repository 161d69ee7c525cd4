"""FastAPI dependencies for authentication and tenant resolution."""

import logging
import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.security import hash_api_token
from app.models.api_token import ApiToken
from app.models.base import utcnow
from app.models.tenant import Tenant
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()


class AuthContext:
    """Resolved identity carried through a request.

    ``tenant_id`` is the effective company scope for data access. It equals
    ``home_tenant_id`` unless an admin sent the tenant header to view as
    another company.
    """

    __slots__ = ("tenant_id", "home_tenant_id", "user_id", "token_id", "user_role")

    def __init__(
        self,
        tenant_id: uuid.UUID,
        user_id: uuid.UUID,
        user_role: str,
        token_id: uuid.UUID | None = None,
        home_tenant_id: uuid.UUID | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.home_tenant_id = home_tenant_id or tenant_id
        self.user_id = user_id
        self.user_role = user_role
        self.token_id = token_id

    @property
    def is_viewing_as(self) -> bool:
        return self.tenant_id != self.home_tenant_id


async def _resolve_api_token(
    raw_token: str, session: AsyncSession
) -> AuthContext:
    """Look up an API token by its SHA-256 hash."""
    token_hash = hash_api_token(raw_token)
    stmt = select(ApiToken).where(
        ApiToken.token_hash == token_hash,
        ApiToken.is_active.is_(True),  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    api_token = result.scalar_one_or_none()

    if api_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or revoked API token",
        )

    if api_token.expires_at and api_token.expires_at < utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API token has expired",
        )

    user = await session.get(User, api_token.user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token owner account is disabled",
        )

    api_token.last_used_at = utcnow()
    session.add(api_token)
    await session.commit()

    return AuthContext(
        tenant_id=api_token.tenant_id,
        user_id=api_token.user_id,
        user_role=user.role,
        token_id=api_token.id,
    )


async def get_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthContext:
    """Resolve a bearer API token to the caller's home-tenant identity."""
    return await _resolve_api_token(credentials.credentials, session)


async def get_auth_context(
    request: Request,
    identity: Annotated[AuthContext, Depends(get_identity)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthContext:
    """Apply the tenant header to the caller's identity.

    No header (or the caller's own company) keeps the home scope. Any other
    company requires the admin role and must exist and be active.
    """
    raw = request.headers.get(get_settings().tenant_header)
    if not raw:
        return identity

    try:
        requested = uuid.UUID(raw.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed company id header",
        ) from exc

    if requested == identity.home_tenant_id:
        return identity

    if identity.user_role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can view another company",
        )

    tenant = await session.get(Tenant, requested)
    if tenant is None or not tenant.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    logger.debug("User %s viewing as company %s", identity.user_id, requested)
    return AuthContext(
        tenant_id=requested,
        user_id=identity.user_id,
        user_role=identity.user_role,
        token_id=identity.token_id,
        home_tenant_id=identity.home_tenant_id,
    )


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
Session = Annotated[AsyncSession, Depends(get_session)]
