from __future__ import annotations

from typing import Any, Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from hostelcare.db.models import VendorTable
from hostelcare.db.session import ensure_datetime

from .models import Vendor

UPDATABLE_FIELDS = frozenset({"name", "specialization", "contact_number", "email", "is_active"})


class VendorRepository:
    """Persistence helper wrapping the `vendors` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_vendor(
        self,
        *,
        name: str,
        specialization: str,
        contact_number: str,
        email: str | None,
        is_active: bool = True,
    ) -> Vendor:
        async with self._session_factory() as session:
            async with session.begin():
                row = VendorTable(
                    name=name,
                    specialization=specialization,
                    contact_number=contact_number,
                    email=email,
                    is_active=is_active,
                )
                session.add(row)
            return self._table_to_vendor(row)

    async def get_vendor(self, vendor_id: int) -> Vendor | None:
        async with self._session_factory() as session:
            row = await session.get(VendorTable, vendor_id)
            return None if row is None else self._table_to_vendor(row)

    async def list_vendors(self, *, active_only: bool = False) -> Sequence[Vendor]:
        statement = select(VendorTable).order_by(VendorTable.name.asc(), VendorTable.id.asc())
        if active_only:
            statement = statement.where(VendorTable.is_active.is_(True))
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._table_to_vendor(row) for row in result.scalars().all()]

    async def update_vendor(self, vendor_id: int, changes: Mapping[str, Any]) -> Vendor | None:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported vendor fields: {', '.join(sorted(unknown))}")
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(VendorTable, vendor_id)
                if row is None:
                    return None
                for name, value in changes.items():
                    setattr(row, name, value)
            return self._table_to_vendor(row)

    @staticmethod
    def _table_to_vendor(row: VendorTable) -> Vendor:
        return Vendor(
            id=int(row.id),
            name=row.name,
            specialization=row.specialization,
            contact_number=row.contact_number,
            email=row.email,
            is_active=bool(row.is_active),
            created_at=ensure_datetime(row.created_at),
        )
