"""Core app configuration, database and token handling."""

from warden.core.config import get_settings, settings
from warden.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
