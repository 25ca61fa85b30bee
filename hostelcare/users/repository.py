from __future__ import annotations

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from hostelcare.db.models import UserTable
from hostelcare.db.session import ensure_datetime

from .models import Role, User


class UserRepository:
    """Persistence helper wrapping the `users` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_user(
        self,
        *,
        username: str,
        role: Role,
        hostel_block: str | None = None,
        api_token: str | None = None,
    ) -> User:
        async with self._session_factory() as session:
            async with session.begin():
                row = UserTable(username=username, role=role.value, hostel_block=hostel_block, api_token=api_token)
                session.add(row)
            return self._table_to_user(row)

    async def get_user(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, user_id)
            return None if row is None else self._table_to_user(row)

    async def get_by_username(self, username: str) -> User | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(UserTable.username == username))
            row = result.scalars().first()
            return None if row is None else self._table_to_user(row)

    async def get_by_token(self, token: str) -> User | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(UserTable.api_token == token))
            row = result.scalars().first()
            return None if row is None else self._table_to_user(row)

    async def list_by_role(self, role: Role) -> Sequence[User]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserTable).where(UserTable.role == role.value).order_by(UserTable.username.asc())
            )
            return [self._table_to_user(row) for row in result.scalars().all()]

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        return User(
            id=int(row.id),
            username=row.username,
            role=Role(row.role),
            hostel_block=row.hostel_block,
            created_at=ensure_datetime(row.created_at),
        )
