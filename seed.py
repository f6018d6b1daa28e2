"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 1 admin, 3 customers, 4 driver users and 2 garage users
  - 4 drivers covering every onboarding stage
  - 2 garages (one approved, one pending)
  - 4 bookings (new, accepted, in progress, completed)
  - 1 quote request with 2 quotes (one already viewed)
  - 2 contact inquiries
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from marketplace.domain.enums import (
    BookingStatus,
    DriverStatus,
    GarageAccountStatus,
    GarageStatus,
    InquiryStatus,
    OnboardingStatus,
    QuoteStatus,
    Role,
)
from marketplace.infrastructure.database import async_session_factory, engine
from marketplace.infrastructure.models import (
    BookingModel,
    DriverModel,
    GarageModel,
    InquiryModel,
    QuoteModel,
    QuoteRequestModel,
    UserModel,
)

USERS = [
    {"name": "Ops Admin", "email": "admin@example.com", "role": Role.ADMIN, "is_approved": True},
    {"name": "Olivia Brown", "email": "olivia@example.com", "role": Role.CUSTOMER, "phone": "+61400000001"},
    {"name": "Jack Wilson", "email": "jack@example.com", "role": Role.CUSTOMER, "phone": "+61400000002"},
    {"name": "Mia Taylor", "email": "mia@example.com", "role": Role.CUSTOMER},
    {"name": "Noah Smith", "email": "noah@example.com", "role": Role.DRIVER},
    {"name": "Ava Jones", "email": "ava@example.com", "role": Role.DRIVER, "is_approved": True},
    {"name": "Liam Martin", "email": "liam@example.com", "role": Role.DRIVER, "is_approved": True},
    {"name": "Chloe White", "email": "chloe@example.com", "role": Role.DRIVER, "is_approved": True},
    {"name": "Harbour Auto", "email": "service@harbourauto.example.com", "role": Role.GARAGE, "is_approved": True},
    {"name": "Northside Motors", "email": "hello@northside.example.com", "role": Role.GARAGE},
]

DRIVERS = [
    # (email, status, onboarding, police check done, can accept jobs)
    ("noah@example.com", DriverStatus.PENDING, OnboardingStatus.NOT_STARTED, False, False),
    ("ava@example.com", DriverStatus.APPROVED, OnboardingStatus.NOT_STARTED, False, False),
    ("liam@example.com", DriverStatus.APPROVED, OnboardingStatus.CONTRACTS_PENDING, True, False),
    ("chloe@example.com", DriverStatus.APPROVED, OnboardingStatus.ACTIVE, True, True),
]


async def seed():
    now = datetime.now(timezone.utc)

    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        users = {}
        for u in USERS:
            m = UserModel(
                name=u["name"],
                email=u["email"],
                role=u["role"],
                phone=u.get("phone"),
                is_approved=u.get("is_approved", False),
            )
            session.add(m)
            users[u["email"]] = m
        await session.flush()
        print(f"  Created {len(users)} users")

        # ── Drivers ───────────────────────────────────────────────────
        drivers = []
        for email, status, onboarding, police_ok, can_accept in DRIVERS:
            first, last = users[email].name.split(" ", 1)
            d = DriverModel(
                user_id=users[email].id,
                first_name=first,
                last_name=last,
                status=status,
                onboarding_status=onboarding,
                can_accept_jobs=can_accept,
                police_check_completed=police_ok,
                police_check_document_url=(
                    f"https://files.example.com/police/{first.lower()}.pdf" if police_ok else None
                ),
            )
            if onboarding == OnboardingStatus.ACTIVE:
                d.employment_contract_signed_at = now - timedelta(days=30)
                d.driver_agreement_signed_at = now - timedelta(days=30)
                d.work_health_safety_signed_at = now - timedelta(days=30)
                d.code_of_conduct_signed_at = now - timedelta(days=30)
                d.employee_start_date = now - timedelta(days=30)
            session.add(d)
            drivers.append(d)
        await session.flush()
        print(f"  Created {len(drivers)} drivers")

        # ── Garages ───────────────────────────────────────────────────
        harbour = GarageModel(
            user_id=users["service@harbourauto.example.com"].id,
            business_name="Harbour Auto",
            phone="+61290000000",
            status=GarageAccountStatus.APPROVED,
            linked_garage_place_id="place-harbour-auto",
            linked_garage_name="Harbour Auto Service Centre",
        )
        northside = GarageModel(
            user_id=users["hello@northside.example.com"].id,
            business_name="Northside Motors",
            status=GarageAccountStatus.PENDING,
        )
        session.add_all([harbour, northside])
        await session.flush()
        print("  Created 2 garages")

        # ── Bookings ──────────────────────────────────────────────────
        olivia, jack = users["olivia@example.com"], users["jack@example.com"]
        bookings = [
            BookingModel(
                user_id=olivia.id, user_name=olivia.name, user_phone=olivia.phone,
                vehicle_registration="ABC123", service_type="Logbook service",
                pickup_time=now + timedelta(days=1),
                garage_name="Harbour Auto Service Centre", garage_place_id="place-harbour-auto",
            ),
            BookingModel(
                user_id=jack.id, user_name=jack.name, user_phone=jack.phone,
                vehicle_registration="XYZ789", service_type="Brake pads",
                pickup_time=now + timedelta(hours=4),
                assigned_garage_id=harbour.id, assigned_at=now - timedelta(hours=2),
                garage_status=GarageStatus.ACCEPTED, garage_accepted_at=now - timedelta(hours=2),
            ),
            BookingModel(
                user_id=olivia.id, user_name=olivia.name, user_phone=olivia.phone,
                vehicle_registration="DEF456", service_type="Tyre rotation",
                assigned_garage_id=harbour.id, assigned_at=now - timedelta(days=1),
                driver_id=drivers[3].id,
                garage_status=GarageStatus.IN_PROGRESS, status=BookingStatus.IN_PROGRESS,
                current_stage="service_in_progress", overall_progress=50,
            ),
            BookingModel(
                user_id=jack.id, user_name=jack.name,
                vehicle_registration="GHI321", service_type="Air conditioning regas",
                assigned_garage_id=harbour.id, assigned_at=now - timedelta(days=3),
                garage_status=GarageStatus.COMPLETED, status=BookingStatus.COMPLETED,
                current_stage="service_completed", overall_progress=100,
                garage_completed_at=now - timedelta(days=2),
            ),
        ]
        session.add_all(bookings)
        await session.flush()
        print(f"  Created {len(bookings)} bookings")

        # ── Quotes ────────────────────────────────────────────────────
        request = QuoteRequestModel(
            customer_id=olivia.id,
            customer_email=olivia.email,
            vehicle_registration="ABC123",
            service_description="Engine light on, needs diagnostics",
        )
        session.add(request)
        await session.flush()
        session.add_all([
            QuoteModel(
                quote_request_id=request.id, garage_id=harbour.id, garage_name=harbour.business_name,
                quoted_amount=180.0, estimated_duration="2 hours",
                valid_until=now + timedelta(days=7),
            ),
            QuoteModel(
                quote_request_id=request.id, garage_id=northside.id, garage_name=northside.business_name,
                quoted_amount=210.0, estimated_duration="3 hours",
                status=QuoteStatus.VIEWED,
                first_viewed_at=now - timedelta(hours=45),
                expires_at=now + timedelta(hours=3),
                valid_until=now + timedelta(days=7),
            ),
        ])
        print("  Created 1 quote request with 2 quotes")

        # ── Inquiries ─────────────────────────────────────────────────
        session.add_all([
            InquiryModel(
                name="Mia Taylor", email="mia@example.com", subject="Pickup area",
                message="Do you pick up from the northern beaches?",
            ),
            InquiryModel(
                name="Sam Lee", email="sam@example.com", subject="Invoice copy",
                message="Could you resend my last invoice?",
                status=InquiryStatus.RESOLVED, resolved_at=now - timedelta(days=1),
            ),
        ])
        print("  Created 2 inquiries")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
