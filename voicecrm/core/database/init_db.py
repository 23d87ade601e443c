# File: voicecrm/core/database/init_db.py
import logging

from .base import Base
from .connection import engine

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """Creates every registered table that does not exist yet."""
    # Import models so they register on Base.metadata
    import voicecrm.features.activities.data.sql_models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database schema ready ({bind.url.get_backend_name()})")
