"""Contact form inquiries (new -> in-progress -> resolved)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.entities import Inquiry
from marketplace.domain.enums import InquiryStatus
from marketplace.domain.errors import InvalidTransition, NotFound
from marketplace.infrastructure.models import InquiryModel
from marketplace.infrastructure.repositories import InquiryRepository


async def submit_inquiry(
    session: AsyncSession, *, name: str, email: str, subject: str, message: str
) -> InquiryModel:
    return await InquiryRepository(session).create(
        InquiryModel(
            name=name.strip(),
            email=email.lower(),
            subject=subject.strip(),
            message=message.strip(),
            status=InquiryStatus.NEW,
        )
    )


async def update_inquiry(
    session: AsyncSession,
    inquiry_id: int,
    *,
    status: Optional[InquiryStatus] = None,
    admin_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> InquiryModel:
    now = now or datetime.now(timezone.utc)
    repo = InquiryRepository(session)

    model = await repo.get_by_id(inquiry_id)
    if model is None:
        raise NotFound("Inquiry not found")

    current = InquiryStatus(model.status)
    entity = Inquiry(id=model.id, status=current, resolved_at=model.resolved_at)
    changes = {}
    if status is not None and status != current:
        entity.transition_to(status, now)
        changes.update(status=entity.status, resolved_at=entity.resolved_at)
    if admin_notes is not None:
        changes["admin_notes"] = admin_notes

    if changes:
        if not await repo.transition(model.id, current, changes):
            raise InvalidTransition("Inquiry was updated by another request")
        await session.refresh(model)
    return model
