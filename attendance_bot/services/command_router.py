import enum
import html
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from attendance_bot.errors import MalformedEvent
from attendance_bot.models.activity import ActivityCategory, CATEGORY_DISPLAY
from attendance_bot.services.activity_log import ClosedActivity, close_open, mark_session_end, open_new
from attendance_bot.services.clock import DATE_FORMAT, TIME_FORMAT, TimeSource
from attendance_bot.services.duration import format_duration
from attendance_bot.services.lateness import LATE_WARNING, is_late
from attendance_bot.services.locks import KeyedLock, user_day_locks
from attendance_bot.services.repository import ActivityRepository
from attendance_bot.services.summary import NO_ACTIVITY_MESSAGE, build_session_summary


class Command(str, enum.Enum):
    START_WORK = "start_work"
    EAT = "eat"
    TOILET = "toilet"
    SMOKE = "smoke"
    BACK_TO_SEAT = "back_to_seat"
    SUMMARY = "summary"
    OFF_WORK = "off_work"


# Button labels exactly as they appear on the reply keyboard
START_WORK_TOKEN = "💼 开始工作 / Start Work"
OFF_WORK_TOKEN = "🏁 下班 / Off Work"
EAT_TOKEN = "🍔 吃饭 / Eat"
TOILET_TOKEN = "🚽 上厕所 / Toilet"
SMOKE_TOKEN = "🚬 抽烟 / Smoke"
BACK_TO_SEAT_TOKEN = "🪑 回到座位 / Back to Seat"
SUMMARY_TOKEN = "📊 本次总结 / Session Summary"

COMMAND_TOKENS = MappingProxyType({
    START_WORK_TOKEN: Command.START_WORK,
    EAT_TOKEN: Command.EAT,
    TOILET_TOKEN: Command.TOILET,
    SMOKE_TOKEN: Command.SMOKE,
    BACK_TO_SEAT_TOKEN: Command.BACK_TO_SEAT,
    SUMMARY_TOKEN: Command.SUMMARY,
    OFF_WORK_TOKEN: Command.OFF_WORK,
})

KEYBOARD_LAYOUT = (
    (START_WORK_TOKEN, OFF_WORK_TOKEN),
    (EAT_TOKEN, TOILET_TOKEN, SMOKE_TOKEN),
    (BACK_TO_SEAT_TOKEN, SUMMARY_TOKEN),
)


@dataclass(frozen=True)
class Transition:
    opens: Optional[ActivityCategory]  # None for Off Work, which marks the session end
    title: str
    time_label: str
    previous_header: str


TRANSITIONS = MappingProxyType({
    Command.START_WORK: Transition(
        opens=ActivityCategory.WORK,
        title="💼 <b>开始工作 / Work Started</b>",
        time_label="时间 / Time",
        previous_header="上一个活动结束 / Previous ended",
    ),
    Command.EAT: Transition(
        opens=ActivityCategory.EAT,
        title="🍔 <b>吃饭去了 / Eating</b>",
        time_label="开始时间 / Start Time",
        previous_header="上一个活动结束",
    ),
    Command.TOILET: Transition(
        opens=ActivityCategory.TOILET,
        title="🚽 <b>上厕所 / Toilet Break</b>",
        time_label="开始时间 / Start Time",
        previous_header="上一个活动结束",
    ),
    Command.SMOKE: Transition(
        opens=ActivityCategory.SMOKE,
        title="🚬 <b>抽烟去了 / Smoking</b>",
        time_label="开始时间 / Start Time",
        previous_header="上一个活动结束",
    ),
    Command.BACK_TO_SEAT: Transition(
        opens=ActivityCategory.WORK,
        title="🪑 <b>回到座位，继续工作 / Back to Work</b>",
        time_label="时间 / Time",
        previous_header="休息结束 / Break ended",
    ),
    Command.OFF_WORK: Transition(
        opens=None,
        title="🏁 <b>下班啦！/ Off Work</b>",
        time_label="时间 / Time",
        previous_header="最后一个活动结束",
    ),
})


START_COMMAND = "/start"


def is_start_command(text: str) -> bool:
    """"/start", "/start@SomeBot" or "/start payload"."""
    if not text:
        return False
    first_word = text.split()[0]
    return first_word.split("@")[0] == START_COMMAND


def parse_command(token: str) -> Optional[Command]:
    """Exact match on the button label; anything else (typed text, /commands) is not a command."""
    if token is None:
        return None
    return COMMAND_TOKENS.get(token.strip())


def previous_notice(header: str, closed: ClosedActivity) -> str:
    display = CATEGORY_DISPLAY[closed.category]
    return f"\n\n✅ {header}:\n{display.label}: {format_duration(closed.duration_minutes)}"


class CommandRouter:
    """
    Applies one button tap to the user's log for today and builds the reply.

    Every read-modify-write of a (user_id, date) log happens while holding
    that key's lock, so two quick taps from the same user cannot overwrite
    each other.
    """

    def __init__(
        self,
        repository: ActivityRepository,
        clock: TimeSource,
        locks: KeyedLock = user_day_locks,
    ):
        self.repository = repository
        self.clock = clock
        self.locks = locks

    def initialize(self, user_id: int, user_name: str) -> str:
        """Make sure today's log exists (without clearing it) and greet the user."""
        _check_user(user_id)
        today = self.clock.today()
        with self.locks.hold((user_id, today)):
            log = self.repository.load_or_create(user_id, today)
            self.repository.save(log)

        return (
            f"👋 <b>欢迎，{html.escape(user_name)}！</b>\n"
            "你的独立考勤面板已就绪。\n"
            "每人数据完全独立记录。"
        )

    def handle(self, user_id: int, user_name: str, token: str) -> Optional[str]:
        """Reply text for the tap, or None when the token isn't a known button."""
        command = parse_command(token)
        if command is None:
            return None
        _check_user(user_id)

        moment = self.clock.now_moment()
        today = moment.strftime(DATE_FORMAT)
        time_now = moment.strftime(TIME_FORMAT)

        with self.locks.hold((user_id, today)):
            if command == Command.SUMMARY:
                log = self.repository.find(user_id, today)
                if log is None:
                    return NO_ACTIVITY_MESSAGE
                return build_session_summary(log, user_name)

            transition = TRANSITIONS[command]
            log = self.repository.load_or_create(user_id, today)

            closed = close_open(log, time_now)
            summary = None
            if command == Command.OFF_WORK:
                # Summarize the session that is ending, before the marker starts a new one
                summary = build_session_summary(log, user_name)
                mark_session_end(log, time_now)
            else:
                open_new(log, transition.opens, time_now)

            response = (
                f"{transition.title}\n"
                f"👤 <b>{html.escape(user_name)}</b>\n"
                f"🕐 {transition.time_label}: {time_now}"
            )
            if command == Command.START_WORK and is_late(moment):
                response += LATE_WARNING
            if closed:
                response += previous_notice(transition.previous_header, closed)
            if summary:
                response += f"\n\n{summary}"

            self.repository.save(log)

        return response


def _check_user(user_id):
    # Webhook events always carry an id; this guards direct callers of the router
    if user_id is None:
        raise MalformedEvent("event has no user id")
