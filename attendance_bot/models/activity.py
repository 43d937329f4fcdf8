from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
import enum
from attendance_bot.db import Base


class ActivityCategory(str, enum.Enum):
    WORK = "Work"
    EAT = "Eat"
    TOILET = "Toilet"
    SMOKE = "Smoke"
    SESSION_END = "SessionEnd"  # zero-length shift boundary marker


# Categories that accumulate time, in summary order
TRACKED_CATEGORIES = (
    ActivityCategory.WORK,
    ActivityCategory.EAT,
    ActivityCategory.TOILET,
    ActivityCategory.SMOKE,
)

BREAK_CATEGORIES = (
    ActivityCategory.EAT,
    ActivityCategory.TOILET,
    ActivityCategory.SMOKE,
)


@dataclass(frozen=True)
class CategoryDisplay:
    icon: str
    name_local: str
    name_english: str

    @property
    def label(self) -> str:
        return f"{self.name_local} / {self.name_english}"


CATEGORY_DISPLAY = MappingProxyType({
    ActivityCategory.WORK: CategoryDisplay("💼", "工作", "Work"),
    ActivityCategory.EAT: CategoryDisplay("🍔", "吃饭", "Eat"),
    ActivityCategory.TOILET: CategoryDisplay("🚽", "上厕所", "Toilet"),
    ActivityCategory.SMOKE: CategoryDisplay("🚬", "抽烟", "Smoke"),
})


class ActivityLog(Base):
    """One worker's activity record for one civil day."""
    __tablename__ = "activity_logs"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_activity_logs_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(BigInteger, nullable=False, index=True)  # Telegram user id
    date = Column(String(10), nullable=False, index=True)     # YYYY-MM-DD, civil timezone
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    activities = relationship(
        "ActivityEntry",
        order_by="ActivityEntry.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ActivityEntry(Base):
    __tablename__ = "activity_entries"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(Integer, ForeignKey("activity_logs.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    category = Column(
        Enum(ActivityCategory, name="activity_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    start = Column("start_time", String(8), nullable=False)  # HH:MM:SS
    end = Column("end_time", String(8), nullable=True)       # unset while the activity is open
