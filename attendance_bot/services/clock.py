from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from attendance_bot.config import settings


DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


class TimeSource:
    """Civil date and wall-clock time in the bot's single fixed timezone."""

    def __init__(self, tz_name: str = None):
        self.tz = ZoneInfo(tz_name or settings.timezone)

    def now_moment(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> str:
        return self.now_moment().strftime(DATE_FORMAT)

    def now(self) -> str:
        return self.now_moment().strftime(TIME_FORMAT)


def elapsed_minutes(start: Optional[str], end: Optional[str]) -> float:
    """
    Minutes from `start` to `end`, both HH:MM:SS on the same civil date.
    Returns 0 if either is missing. A span across midnight comes out negative.
    """
    if not start or not end:
        return 0
    start_dt = datetime.strptime(start, TIME_FORMAT)
    end_dt = datetime.strptime(end, TIME_FORMAT)
    return (end_dt - start_dt).total_seconds() / 60


time_source = TimeSource()


def get_clock() -> TimeSource:
    return time_source
