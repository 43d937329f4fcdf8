from pydantic import BaseModel
from attendance_bot.models.activity import ActivityCategory


class ActivityEntryResponse(BaseModel):
    """Single entry of a day's log"""
    category: ActivityCategory
    start: str
    end: str | None = None      # None while the activity is still running

    class Config:
        from_attributes = True


class ActivityLogResponse(BaseModel):
    """A worker's full log for one civil day"""
    user_id: int
    date: str
    activities: list[ActivityEntryResponse]

    class Config:
        from_attributes = True


class CategoryTotalResponse(BaseModel):
    category: ActivityCategory
    total_minutes: float
    count: int


class SessionSummaryResponse(BaseModel):
    """Totals for the current session (since the last Off Work)"""
    user_id: int
    date: str
    categories: list[CategoryTotalResponse]
    total_minutes: float
    net_work_minutes: float
    open_activity: ActivityEntryResponse | None = None
