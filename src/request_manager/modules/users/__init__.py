"""
Users module - Staff accounts and digest preferences.
"""

from request_manager.modules.users.models import User, UserRole
from request_manager.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
