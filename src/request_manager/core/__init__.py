"""
Core module - Configuration, database, scheduling, email and security.
"""

from request_manager.core.config import get_settings, settings
from request_manager.core.database import Base, close_db, get_db, init_db
from request_manager.core.redis import close_redis, get_redis, init_redis
from request_manager.core.security import create_access_token, decode_token

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "create_access_token",
    "decode_token",
]
