from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_bot.errors import PersistenceUnavailable
from attendance_bot.models.activity import ActivityLog


class ActivityRepository:
    """Load and store ActivityLogs keyed by (user_id, date)."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: int, date: str, lock: bool = False):
        query = self.db.query(ActivityLog).filter(
            ActivityLog.user_id == user_id,
            ActivityLog.date == date,
        )
        if lock:
            # Row lock until commit, so other worker processes wait their turn (no-op on SQLite)
            query = query.with_for_update()
        return query

    def find(self, user_id: int, date: str, lock: bool = False) -> Optional[ActivityLog]:
        try:
            return self._query(user_id, date, lock).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceUnavailable(f"load failed for user {user_id} on {date}") from e

    def load_or_create(self, user_id: int, date: str) -> ActivityLog:
        """Existing log for the key, or a new empty one. Never inserts a duplicate."""
        log = self.find(user_id, date, lock=True)
        if log:
            return log

        log = ActivityLog(user_id=user_id, date=date, activities=[])
        self.db.add(log)
        try:
            self.db.flush()
        except IntegrityError:
            # Another process inserted the same key first
            self.db.rollback()
            log = self.find(user_id, date, lock=True)
            if log is None:
                raise PersistenceUnavailable(f"could not create log for user {user_id} on {date}")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceUnavailable(f"could not create log for user {user_id} on {date}") from e
        return log

    def save(self, log: ActivityLog) -> ActivityLog:
        try:
            self.db.add(log)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceUnavailable(f"save failed for user {log.user_id} on {log.date}") from e
        return log
