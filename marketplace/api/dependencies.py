"""FastAPI dependency injection helpers."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.auth import require_role
from marketplace.domain.enums import Role
from marketplace.infrastructure.database import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session.

    Commits whatever the handler left pending; a raised ``DomainError``
    rolls back, so a failed guard never leaves a half-written transition.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


require_admin = require_role(Role.ADMIN)
require_garage = require_role(Role.GARAGE)
