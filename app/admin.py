"""Create an admin operator: the only role allowed to view as other companies.

Usage: python -m app.admin <company-slug> <email> <password>
"""

import asyncio
import logging
import sys
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.security import generate_api_token, hash_api_token, hash_password
from app.models.api_token import ApiToken
from app.models.tenant import Tenant
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def create_admin(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    email: str,
    password: str,
    display_name: str = "",
) -> tuple[User, str]:
    """Create an admin user plus an API token; returns (user, raw_token)."""
    existing = await session.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise ValueError(f"User with email '{email}' already exists")

    user = User(
        tenant_id=tenant_id,
        email=email,
        password_hash=hash_password(password),
        display_name=display_name,
        role=UserRole.ADMIN,
    )
    session.add(user)
    await session.flush()

    raw_token = generate_api_token()
    session.add(ApiToken(
        tenant_id=tenant_id,
        user_id=user.id,
        name="admin",
        token_hash=hash_api_token(raw_token),
        token_prefix=raw_token[:8],
    ))
    await session.commit()
    await session.refresh(user)
    logger.info("Created admin %s in tenant %s", user.id, tenant_id)
    return user, raw_token


async def _main(argv: list[str]) -> int:
    from app.core.database import async_session_factory, init_db

    if len(argv) != 3:
        print(__doc__.strip().splitlines()[-1], file=sys.stderr)
        return 1
    slug, email, password = argv

    await init_db()
    async with async_session_factory() as session:
        result = await session.execute(select(Tenant).where(Tenant.slug == slug))
        tenant = result.scalar_one_or_none()
        if tenant is None:
            print(f"ERROR: company '{slug}' does not exist", file=sys.stderr)
            return 1
        try:
            user, raw_token = await create_admin(session, tenant.id, email, password)
        except ValueError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    print(f"Admin user created: {user.id} <{user.email}>")
    print(f"API token (shown once): {raw_token}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(_main(sys.argv[1:])))
