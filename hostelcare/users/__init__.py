"""Identity and role model."""

from .models import Role, User
from .repository import UserRepository
from .service import UserDirectory

__all__ = ["Role", "User", "UserDirectory", "UserRepository"]
