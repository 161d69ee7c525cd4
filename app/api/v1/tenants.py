"""Company registration (bootstrap) and company lookup endpoints."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlmodel import select

from app.api.deps import Auth, Session
from app.core.security import generate_api_token, hash_api_token, hash_password
from app.models.api_token import ApiToken
from app.models.tenant import Tenant, TenantRead
from app.models.user import User, UserRole

router = APIRouter(prefix="/tenants", tags=["tenants"])


# ── Bootstrap request / response schemas ──────────────────────

class TenantBootstrapRequest(BaseModel):
    """Everything needed to create a new company + its director in one call."""
    tenant_name: str = Field(max_length=255)
    tenant_slug: str = Field(max_length=100, pattern=r"^[a-z0-9\-]+$")
    owner_email: EmailStr
    owner_password: str = Field(min_length=8, max_length=128)
    owner_display_name: str = Field(default="", max_length=255)


class TenantBootstrapResponse(BaseModel):
    tenant: TenantRead
    api_token: str = Field(description="Shown once — store it securely")
    token_prefix: str


class CurrentTenantResponse(BaseModel):
    tenant: TenantRead
    viewing_as: bool


# ── Routes ────────────────────────────────────────────────────

@router.post(
    "",
    response_model=TenantBootstrapResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new company (bootstrap)",
)
async def bootstrap_tenant(
    body: TenantBootstrapRequest,
    session: Session,
) -> TenantBootstrapResponse:
    """Create a company, its first director, and an initial API token.

    This is the only unauthenticated write endpoint.
    The raw API token is returned once — the caller must store it.
    """
    existing = await session.execute(
        select(Tenant).where(Tenant.slug == body.tenant_slug)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Slug '{body.tenant_slug}' is already taken",
        )

    existing = await session.execute(select(User).where(User.email == body.owner_email))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    tenant = Tenant(
        name=body.tenant_name,
        slug=body.tenant_slug,
        contact_email=body.owner_email,
    )
    session.add(tenant)
    await session.flush()  # populate tenant.id

    user = User(
        tenant_id=tenant.id,
        email=body.owner_email,
        password_hash=hash_password(body.owner_password),
        display_name=body.owner_display_name,
        role=UserRole.DIRECTOR,
    )
    session.add(user)
    await session.flush()

    raw_token = generate_api_token()
    prefix = raw_token[:8]
    token = ApiToken(
        tenant_id=tenant.id,
        user_id=user.id,
        name="default",
        token_hash=hash_api_token(raw_token),
        token_prefix=prefix,
    )
    session.add(token)
    await session.commit()
    await session.refresh(tenant)

    return TenantBootstrapResponse(
        tenant=TenantRead.model_validate(tenant),
        api_token=raw_token,
        token_prefix=prefix,
    )


@router.get(
    "",
    response_model=list[TenantRead],
    summary="List companies an admin can view as",
)
async def list_tenants(
    auth: Auth,
    session: Session,
) -> list[TenantRead]:
    if auth.user_role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can list companies",
        )
    stmt = (
        select(Tenant)
        .where(Tenant.is_active.is_(True))  # type: ignore[attr-defined]
        .order_by(Tenant.name.asc())  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    return [TenantRead.model_validate(t) for t in result.scalars().all()]


@router.get(
    "/me",
    response_model=CurrentTenantResponse,
    summary="Get the company the current request is scoped to",
)
async def get_current_tenant(
    auth: Auth,
    session: Session,
) -> CurrentTenantResponse:
    """Returns the effective company, honouring the view-as header."""
    tenant = await session.get(Tenant, auth.tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return CurrentTenantResponse(
        tenant=TenantRead.model_validate(tenant),
        viewing_as=auth.is_viewing_as,
    )
