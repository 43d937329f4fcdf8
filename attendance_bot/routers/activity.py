from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from attendance_bot.db import get_db
from attendance_bot.errors import PersistenceUnavailable
from attendance_bot.models.activity import TRACKED_CATEGORIES
from attendance_bot.schemas.activity import (
    ActivityEntryResponse,
    ActivityLogResponse,
    CategoryTotalResponse,
    SessionSummaryResponse,
)
from attendance_bot.services.activity_log import aggregate, current_session, open_activity
from attendance_bot.services.clock import TimeSource, get_clock
from attendance_bot.services.repository import ActivityRepository

router = APIRouter(prefix="/activities", tags=["activities"])


def _entry_response(entry):
    return ActivityEntryResponse.model_validate(entry) if entry else None


def _find_today(user_id: int, db: Session, clock: TimeSource):
    try:
        return ActivityRepository(db).find(user_id, clock.today())
    except PersistenceUnavailable as e:
        print(f"❌ {e}")
        raise HTTPException(status_code=503, detail="Storage unavailable")


@router.get("/{user_id}/today", response_model=ActivityLogResponse)
async def get_today_log(
    user_id: int,
    db: Session = Depends(get_db),
    clock: TimeSource = Depends(get_clock),
):
    """Today's activity log for a user."""
    log = _find_today(user_id, db, clock)
    if not log:
        raise HTTPException(status_code=404, detail="No activity recorded today")
    return log


@router.get("/{user_id}/summary", response_model=SessionSummaryResponse)
async def get_session_summary(
    user_id: int,
    db: Session = Depends(get_db),
    clock: TimeSource = Depends(get_clock),
):
    """
    Current-session totals per category.
    Returns zeros if the user has no log today.
    """
    log = _find_today(user_id, db, clock)
    entries = log.activities if log else []
    totals = aggregate(current_session(entries))

    return SessionSummaryResponse(
        user_id=user_id,
        date=clock.today(),
        categories=[
            CategoryTotalResponse(
                category=category,
                total_minutes=totals.per_category[category].total_minutes,
                count=totals.per_category[category].count,
            )
            for category in TRACKED_CATEGORIES
        ],
        total_minutes=totals.total_minutes,
        net_work_minutes=totals.net_work_minutes,
        open_activity=_entry_response(open_activity(log)) if log else None,
    )
