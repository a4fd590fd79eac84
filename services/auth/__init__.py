"""Phone-and-PIN accounts and the user directory."""

from .auth_service import AuthService, public_user
from .user_service import UserService

__all__ = ["AuthService", "UserService", "public_user"]
