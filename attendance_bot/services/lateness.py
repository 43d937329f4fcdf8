from datetime import datetime


SUNDAY = 6
SUNDAY_DEADLINE_HOUR = 14
WEEKDAY_DEADLINE_HOUR = 11

LATE_WARNING = (
    "\n\n🔴 <b>WARNING: YOU ARE LATE</b> 🔴"
    "\n⚠️ <b>You are late, and you are fined.</b>"
    "\n⚠️ <b>你迟到了，你将被罚款。</b>"
)


def deadline_hour(moment: datetime) -> int:
    return SUNDAY_DEADLINE_HOUR if moment.weekday() == SUNDAY else WEEKDAY_DEADLINE_HOUR


def is_late(moment: datetime) -> bool:
    """True if `moment` is past the top of the day's deadline hour. No grace period."""
    limit = deadline_hour(moment)
    if moment.hour > limit:
        return True
    if moment.hour == limit:
        return moment.minute > 0 or moment.second > 0
    return False
