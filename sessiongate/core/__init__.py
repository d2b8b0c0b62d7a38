# sessiongate Core Module
from .clock import Clock, utc_now
from .config import get_settings, settings
from .database import Base, async_session_maker, check_db_connection, engine
from .logging import setup_logging

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "Base",
    "engine",
    "async_session_maker",
    "check_db_connection",
    "Clock",
    "utc_now",
]
