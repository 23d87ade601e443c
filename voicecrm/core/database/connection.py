# File: voicecrm/core/database/connection.py
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from voicecrm.core.config.settings import settings

logger = logging.getLogger(__name__)

# check_same_thread=False is needed only for SQLite (Test Mode)
connect_args = {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args
)

# Activities are handed back to callers after the session closes
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def ping(session_factory=SessionLocal) -> bool:
    """True when the database answers a trivial query."""
    try:
        with session_factory() as db:
            return db.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as e:
        logger.warning(f"Database ping failed: {e}")
        return False
