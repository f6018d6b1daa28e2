"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models are used as-is; the
rate limiter is pointed at in-process storage before the app is imported.
"""

import itertools
import os

os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from marketplace.api.auth import create_token
from marketplace.domain.enums import (
    DriverStatus,
    GarageAccountStatus,
    GarageStatus,
    OnboardingStatus,
    QuoteStatus,
    Role,
)
from marketplace.infrastructure.database import Base
from marketplace.infrastructure.models import (
    BookingModel,
    DriverModel,
    GarageModel,
    QuoteModel,
    QuoteRequestModel,
    UserModel,
)


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

_ids = itertools.count(1)


def auth_headers(user: UserModel) -> dict[str, str]:
    token = create_token(user.id, user.email, Role(user.role))
    return {"Authorization": f"Bearer {token}"}


# ── Factories ─────────────────────────────────────────────────────────


async def make_user(
    session: AsyncSession,
    role: Role,
    *,
    email: Optional[str] = None,
    is_approved: bool = False,
    phone: Optional[str] = None,
) -> UserModel:
    count = next(_ids)
    user = UserModel(
        name=f"{role.value.title()} {count}",
        email=email or f"{role.value}{count}@example.com",
        role=role,
        is_approved=is_approved,
        phone=phone,
    )
    session.add(user)
    await session.flush()
    return user


async def make_driver(
    session: AsyncSession,
    *,
    status: DriverStatus = DriverStatus.APPROVED,
    onboarding: OnboardingStatus = OnboardingStatus.NOT_STARTED,
    police_check: bool = True,
    can_accept_jobs: bool = False,
    is_clocked_in: bool = False,
    last_clock_in: Optional[datetime] = None,
) -> tuple[UserModel, DriverModel]:
    user = await make_user(
        session, Role.DRIVER, is_approved=status == DriverStatus.APPROVED
    )
    driver = DriverModel(
        user_id=user.id,
        first_name="Sam",
        last_name=f"Driver{user.id}",
        status=status,
        onboarding_status=onboarding,
        can_accept_jobs=can_accept_jobs,
        police_check_completed=police_check,
        police_check_document_url="https://files.example.com/police.pdf" if police_check else None,
        is_clocked_in=is_clocked_in,
        last_clock_in=last_clock_in,
    )
    session.add(driver)
    await session.flush()
    return user, driver


async def make_active_driver(session: AsyncSession, **kwargs) -> tuple[UserModel, DriverModel]:
    return await make_driver(
        session,
        onboarding=OnboardingStatus.ACTIVE,
        can_accept_jobs=True,
        **kwargs,
    )


async def make_garage(
    session: AsyncSession,
    *,
    status: GarageAccountStatus = GarageAccountStatus.APPROVED,
    business_name: str = "Harbour Auto",
    linked_place_id: Optional[str] = None,
    linked_name: Optional[str] = None,
) -> tuple[UserModel, GarageModel]:
    user = await make_user(session, Role.GARAGE, is_approved=True)
    garage = GarageModel(
        user_id=user.id,
        business_name=business_name,
        status=status,
        linked_garage_place_id=linked_place_id,
        linked_garage_name=linked_name,
    )
    session.add(garage)
    await session.flush()
    return user, garage


async def make_booking(
    session: AsyncSession,
    *,
    garage_status: GarageStatus = GarageStatus.NEW,
    assigned_garage_id: Optional[int] = None,
    garage_place_id: Optional[str] = None,
    garage_name: Optional[str] = None,
    **kwargs,
) -> BookingModel:
    booking = BookingModel(
        user_name="Olivia Brown",
        vehicle_registration="ABC123",
        service_type="Logbook service",
        garage_status=garage_status,
        assigned_garage_id=assigned_garage_id,
        assigned_at=NOW if assigned_garage_id else None,
        garage_place_id=garage_place_id,
        garage_name=garage_name,
        **kwargs,
    )
    session.add(booking)
    await session.flush()
    return booking


async def make_quote(
    session: AsyncSession,
    customer: UserModel,
    garage: GarageModel,
    *,
    status: QuoteStatus = QuoteStatus.PENDING,
    first_viewed_at: Optional[datetime] = None,
    expires_at: Optional[datetime] = None,
    valid_until: Optional[datetime] = None,
) -> QuoteModel:
    request = QuoteRequestModel(
        customer_id=customer.id,
        customer_email=customer.email,
        vehicle_registration="ABC123",
        service_description="Brake noise",
    )
    session.add(request)
    await session.flush()
    quote = QuoteModel(
        quote_request_id=request.id,
        garage_id=garage.id,
        garage_name=garage.business_name,
        quoted_amount=180.0,
        estimated_duration="2 hours",
        status=status,
        first_viewed_at=first_viewed_at,
        expires_at=expires_at,
        valid_until=valid_until or datetime.now(timezone.utc) + timedelta(days=7),
    )
    session.add(quote)
    await session.flush()
    return quote


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by the same SQLite database as ``db_session``."""

    async def _test_db():
        async with TestSessionFactory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    from marketplace.api.app import create_app
    from marketplace.api.dependencies import get_db

    app = create_app()
    app.dependency_overrides[get_db] = _test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
