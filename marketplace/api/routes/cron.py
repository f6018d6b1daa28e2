"""
Scheduler endpoints
===================

GET /api/v1/cron/auto-clockout -- clock out drivers over the shift limit

Authenticated with ``Authorization: Bearer <CRON_SECRET>``.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.auth import require_cron
from marketplace.api.dependencies import get_db
from marketplace.api.schemas import AutoClockoutResponse, AutoClockoutResultResponse
from marketplace.workers.auto_clockout import run_with_lock

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get(
    "/auto-clockout",
    response_model=AutoClockoutResponse,
    summary="Auto clock out drivers over the shift limit",
    dependencies=[Depends(require_cron)],
)
async def auto_clockout(db: AsyncSession = Depends(get_db)):
    report = await run_with_lock(db)
    return AutoClockoutResponse(
        skipped=report.skipped_run,
        processed=report.processed,
        threshold=report.threshold,
        results=[AutoClockoutResultResponse.model_validate(r) for r in report.results],
    )
