import html

from attendance_bot.models.activity import (
    ActivityCategory,
    ActivityLog,
    CATEGORY_DISPLAY,
    TRACKED_CATEGORIES,
)
from attendance_bot.services.activity_log import aggregate, current_session
from attendance_bot.services.duration import format_duration


NO_ACTIVITY_LINE = "<i>暂无活动记录</i>"
NO_ACTIVITY_MESSAGE = f"📝 <b>本次工作总结</b>\n{NO_ACTIVITY_LINE}"
RULE = "──────────────────"


def build_session_summary(log: ActivityLog, user_name: str) -> str:
    """
    Summary of the current session (everything since the last Off Work).
    Only closed entries count; the activity in progress is left out.
    """
    if log is None or not log.activities:
        return NO_ACTIVITY_MESSAGE

    totals = aggregate(current_session(log.activities))

    lines = []
    for category in TRACKED_CATEGORIES:
        total = totals.per_category[category]
        if total.total_minutes > 0 or total.count > 0:
            display = CATEGORY_DISPLAY[category]
            count_str = "" if category == ActivityCategory.WORK else f" ({total.count}次)"
            lines.append(
                f"{display.icon} <b>{display.label}:</b> "
                f"{format_duration(total.total_minutes)}{count_str}"
            )

    body = "\n".join(lines) if lines else NO_ACTIVITY_LINE

    return (
        "📝 <b>本次工作总结 / Session Summary</b>\n"
        f"👤 <b>用户 / User:</b> {html.escape(user_name)}\n"
        f"{RULE}\n"
        f"{body}\n"
        f"{RULE}\n"
        f"⏱ <b>本次总时长 / Total Session Time:</b> {format_duration(totals.total_minutes)}\n"
        f"✅ <b>实际工作时长 / Actual Working Hours:</b> {format_duration(totals.net_work_minutes)}"
    )
