# File: voicecrm/core/database/base.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import declarative_base

# The shared registry. All feature models (Activity, ...) inherit from this.
Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
