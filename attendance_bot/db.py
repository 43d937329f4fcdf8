from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from attendance_bot.config import settings


connect_args = {}
if settings.database_url.startswith("sqlite"):
    # Webhook handlers run in the thread pool
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create tables that don't exist yet."""
    from attendance_bot.models import activity  # noqa: F401  (registers tables)
    Base.metadata.create_all(bind=engine)
