import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from attendance_bot.db import Base
from attendance_bot.models import activity  # noqa: F401  (registers tables)
from attendance_bot.services.clock import TimeSource
from attendance_bot.services.command_router import CommandRouter
from attendance_bot.services.locks import KeyedLock
from attendance_bot.services.repository import ActivityRepository


MONDAY = "2026-10-19"
SUNDAY = "2026-10-18"


class FakeClock(TimeSource):
    """TimeSource pinned to a moment the test moves by hand."""

    def __init__(self, date: str = MONDAY, time: str = "09:00:00"):
        super().__init__("Asia/Phnom_Penh")
        self.set(time, date)

    def set(self, time: str, date: str = None):
        date = date or self.moment.strftime("%Y-%m-%d")
        self.moment = datetime.strptime(f"{date} {time}", "%Y-%m-%d %H:%M:%S").replace(tzinfo=self.tz)

    def now_moment(self) -> datetime:
        return self.moment


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(db):
    return ActivityRepository(db)


@pytest.fixture
def router(repository, clock):
    return CommandRouter(repository, clock, locks=KeyedLock())


class FakeTelegramClient:
    """Records outgoing messages instead of calling the Bot API."""

    def __init__(self):
        self.sent = []

    async def send_message(self, chat_id: int, text: str) -> bool:
        self.sent.append((chat_id, text))
        return True


@pytest.fixture
def telegram():
    return FakeTelegramClient()


@pytest.fixture
def client(db, clock, telegram):
    from fastapi.testclient import TestClient

    from attendance_bot.db import get_db
    from attendance_bot.main import app
    from attendance_bot.services.clock import get_clock
    from attendance_bot.services.telegram_client import get_telegram_client

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_telegram_client] = lambda: telegram

    # Not used as a context manager: startup (table creation, webhook registration) is skipped
    yield TestClient(app)

    app.dependency_overrides.clear()
