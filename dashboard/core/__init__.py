"""Core infrastructure: config, database, logging, middleware, exceptions, clock."""

from dashboard.core.clock import Clock, get_clock, utc_now
from dashboard.core.config import Settings, get_settings
from dashboard.core.database import Base, get_db
from dashboard.core.logging import get_logger, request_id_ctx

__all__ = [
    "Base",
    "Clock",
    "Settings",
    "get_clock",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
    "utc_now",
]
