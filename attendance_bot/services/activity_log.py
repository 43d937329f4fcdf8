from dataclasses import dataclass, field
from typing import Optional, Sequence

from attendance_bot.models.activity import (
    ActivityCategory,
    ActivityEntry,
    ActivityLog,
    BREAK_CATEGORIES,
    TRACKED_CATEGORIES,
)
from attendance_bot.services.clock import elapsed_minutes


@dataclass(frozen=True)
class ClosedActivity:
    """What `close_open` just ended, for the "previous activity ended" notice."""
    category: ActivityCategory
    duration_minutes: float


@dataclass
class CategoryTotal:
    total_minutes: float = 0.0
    count: int = 0


@dataclass
class SessionTotals:
    per_category: dict[ActivityCategory, CategoryTotal] = field(default_factory=dict)
    total_minutes: float = 0.0
    net_work_minutes: float = 0.0

    @property
    def is_empty(self) -> bool:
        return all(t.total_minutes == 0 and t.count == 0 for t in self.per_category.values())


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

def open_activity(log: ActivityLog) -> Optional[ActivityEntry]:
    """The entry still in progress, if any. Only the last entry can be open."""
    if not log.activities:
        return None
    last = log.activities[-1]
    if last.end is None and last.category != ActivityCategory.SESSION_END:
        return last
    return None


def close_open(log: ActivityLog, at_time: str) -> Optional[ClosedActivity]:
    """End the open activity at `at_time`. No-op (returns None) when nothing is open."""
    last = open_activity(log)
    if last is None:
        return None
    last.end = at_time
    return ClosedActivity(
        category=ActivityCategory(last.category),
        duration_minutes=elapsed_minutes(last.start, at_time),
    )


def open_new(log: ActivityLog, category: ActivityCategory, at_time: str) -> ActivityEntry:
    entry = ActivityEntry(category=category, start=at_time, end=None)
    log.activities.append(entry)
    return entry


def mark_session_end(log: ActivityLog, at_time: str) -> ActivityEntry:
    """Append the shift boundary marker. Callers close the open activity first."""
    entry = ActivityEntry(category=ActivityCategory.SESSION_END, start=at_time, end=at_time)
    log.activities.append(entry)
    return entry


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def current_session(entries: Sequence[ActivityEntry]) -> list[ActivityEntry]:
    """Everything after the last SessionEnd marker, or the whole log if there is none."""
    for index in range(len(entries) - 1, -1, -1):
        if entries[index].category == ActivityCategory.SESSION_END:
            return list(entries[index + 1:])
    return list(entries)


def aggregate(entries: Sequence[ActivityEntry]) -> SessionTotals:
    """
    Per-category totals over closed entries. Open entries count for nothing
    until a later event closes them.
    """
    totals = SessionTotals()

    for category in TRACKED_CATEGORIES:
        closed = [e for e in entries if e.category == category and e.end]
        totals.per_category[category] = CategoryTotal(
            total_minutes=sum(elapsed_minutes(e.start, e.end) for e in closed),
            count=len(closed),
        )

    totals.total_minutes = sum(t.total_minutes for t in totals.per_category.values())
    break_minutes = sum(totals.per_category[c].total_minutes for c in BREAK_CATEGORIES)
    totals.net_work_minutes = totals.total_minutes - break_minutes
    return totals
