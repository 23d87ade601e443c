# File: tests/conftest.py

import os
import logging
from pathlib import Path

import pytest
import sqlalchemy
from sqlalchemy import text
from sqlalchemy_utils import database_exists, create_database

# 1. Configure the environment before any voicecrm module reads settings
TEST_DB_PATH = Path(__file__).resolve().parent / "temp_artifacts" / "test_voicecrm.db"
TEST_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ["TRANSCRIPTION_BACKEND"] = "none"
os.environ["ENHANCER_ENABLED"] = "false"
os.environ["VOICECRM_API_TOKENS"] = "alice-token:alice,bob-token:bob"
os.environ["VOICECRM_DATA_DIR"] = str(TEST_DB_PATH.parent / "data")

# 2. Import the engine the application uses
from voicecrm.core.database.connection import engine as TEST_ENGINE, SessionLocal as TestingSessionLocal  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def global_setup():
    """
    Runs once per test session.
    Ensures DB exists and creates the schema.
    """
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not database_exists(TEST_ENGINE.url):
        create_database(TEST_ENGINE.url)

    from voicecrm.core.database.base import Base
    import voicecrm.features.activities.data.sql_models  # noqa: F401

    Base.metadata.create_all(bind=TEST_ENGINE)

    yield


@pytest.fixture(scope="function", autouse=True)
def clean_db(global_setup):
    """
    Runs before EVERY test.
    Detects DB type and cleans tables appropriately.
    """
    with TEST_ENGINE.connect() as conn:
        trans = conn.begin()

        is_sqlite = "sqlite" in str(TEST_ENGINE.url)
        table_names = sqlalchemy.inspect(TEST_ENGINE).get_table_names()

        if table_names:
            if is_sqlite:
                conn.execute(text("PRAGMA foreign_keys = OFF;"))
                for table in table_names:
                    conn.execute(text(f'DELETE FROM "{table}";'))
                conn.execute(text("PRAGMA foreign_keys = ON;"))
            else:
                conn.execute(text("SET session_replication_role = 'replica';"))
                for table in table_names:
                    conn.execute(text(f'TRUNCATE TABLE "{table}" CASCADE;'))
                conn.execute(text("SET session_replication_role = 'origin';"))

        trans.commit()

    yield


@pytest.fixture(scope="function")
def db_session():
    """
    Provides a session for the test to use.
    """
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


# --- Fakes ---

class FakeTranscriber:
    """Returns a fixed result, or raises the given exception."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    async def transcribe(self, clip):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class FakeEnhancer:
    def __init__(self, hints=None, error=None):
        self.hints = hints
        self.error = error
        self.calls = []

    def enhance(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.hints


@pytest.fixture
def fake_transcriber():
    return FakeTranscriber


@pytest.fixture
def fake_enhancer():
    return FakeEnhancer


@pytest.fixture
def wav_bytes():
    """Half a second of 16 kHz mono silence as a WAV file."""
    import io
    import wave

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(16000)
        handle.writeframes(b"\x00\x00" * 8000)
    return buffer.getvalue()
