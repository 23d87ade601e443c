# File: tests/core/test_database.py

from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from voicecrm.core.database.base import as_utc
from voicecrm.core.database.connection import ping


def test_database_connection():
    """
    Simple smoke test to ensure DB is reachable and configured.
    """
    assert ping() is True


def test_ping_reports_unreachable_databases(tmp_path):
    # A directory cannot be opened as a SQLite file
    broken = sessionmaker(bind=create_engine(f"sqlite:///{tmp_path}"))

    assert ping(broken) is False


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    aware = as_utc(naive)

    assert aware.tzinfo == timezone.utc
    assert aware.hour == 12
    assert as_utc(None) is None

    already = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(already) is already
