from __future__ import annotations

import logging
import secrets
from typing import Sequence

from hostelcare.errors import UserNotFoundError, ValidationError

from .models import Role, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class UserDirectory:
    """Lookup of accounts by id, role and bearer credential."""

    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    async def resolve_token(self, token: str) -> User | None:
        if not token:
            return None
        return await self._repository.get_by_token(token)

    async def get_user(self, user_id: int) -> User:
        user = await self._repository.get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def get_warden(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if user.role is not Role.WARDEN:
            raise ValidationError(f"User {user_id} is not a warden", field="assignedTo")
        return user

    async def list_wardens(self) -> Sequence[User]:
        return await self._repository.list_by_role(Role.WARDEN)

    async def register(
        self,
        *,
        username: str,
        role: Role,
        hostel_block: str | None = None,
        api_token: str | None = None,
    ) -> User:
        if not username.strip():
            raise ValidationError("Username must not be empty", field="username")
        if await self._repository.get_by_username(username) is not None:
            raise ValidationError(f"Username {username!r} is already taken", field="username")
        user = await self._repository.create_user(
            username=username,
            role=role,
            hostel_block=hostel_block,
            api_token=api_token,
        )
        logger.info("Registered %s account %s (id=%s)", role.value, username, user.id)
        return user

    async def ensure_system_user(self, username: str) -> User:
        """Return the account anonymous submissions are attributed to, creating it if needed."""

        existing = await self._repository.get_by_username(username)
        if existing is not None:
            return existing
        # The system account never authenticates, so its token is random and discarded.
        return await self.register(username=username, role=Role.TENANT, api_token=secrets.token_urlsafe(32))
