from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from hostelcare.access import TicketScope
from hostelcare.db.models import TicketTable
from hostelcare.db.session import ensure_datetime

from .models import Ticket
from .state import TicketPriority, TicketStatus


class TicketStore(Protocol):
    """Storage interface the ticket service depends on."""

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        location: str,
        status: TicketStatus,
        priority: TicketPriority,
        images: Sequence[str] | None,
        created_by: int,
        created_at: datetime,
    ) -> Ticket:
        ...

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        ...

    async def list_tickets(self, scope: TicketScope, *, status: TicketStatus | None = None) -> Sequence[Ticket]:
        ...

    async def save_transition(self, ticket: Ticket, *, expected: Ticket) -> Ticket | None:
        ...


class TicketRepository:
    """Persistence helper wrapping the `tickets` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        location: str,
        status: TicketStatus,
        priority: TicketPriority,
        images: Sequence[str] | None,
        created_by: int,
        created_at: datetime,
    ) -> Ticket:
        async with self._session_factory() as session:
            async with session.begin():
                row = TicketTable(
                    title=title,
                    description=description,
                    location=location,
                    status=status.value,
                    priority=priority.value,
                    images=list(images) if images else None,
                    created_by=created_by,
                    created_at=created_at,
                    updated_at=created_at,
                )
                session.add(row)
            return self._table_to_ticket(row)

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            return None if row is None else self._table_to_ticket(row)

    async def list_tickets(self, scope: TicketScope, *, status: TicketStatus | None = None) -> Sequence[Ticket]:
        statement = select(TicketTable)
        if scope.created_by is not None:
            statement = statement.where(TicketTable.created_by == scope.created_by)
        if scope.assigned_to is not None:
            statement = statement.where(TicketTable.assigned_to == scope.assigned_to)
        if status is not None:
            statement = statement.where(TicketTable.status == status.value)
        statement = statement.order_by(TicketTable.created_at.desc(), TicketTable.id.desc())
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._table_to_ticket(row) for row in result.scalars().all()]

    async def save_transition(self, ticket: Ticket, *, expected: Ticket) -> Ticket | None:
        """Write the lifecycle fields of ``ticket`` if the stored row still matches ``expected``.

        Status, assignee and vendor are all compared, so a vendor re-selection
        that keeps the status unchanged still invalidates a stale write.
        Returns ``None`` when no row matched, either because the ticket is gone
        or because another transition got there first.
        """

        statement = (
            update(TicketTable)
            .where(TicketTable.id == ticket.id)
            .where(TicketTable.status == expected.status.value)
            .where(_same(TicketTable.assigned_to, expected.assigned_to))
            .where(_same(TicketTable.vendor_id, expected.vendor_id))
            .values(
                status=ticket.status.value,
                assigned_to=ticket.assigned_to,
                vendor_id=ticket.vendor_id,
                updated_at=ticket.updated_at,
            )
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(statement)
                if result.rowcount != 1:
                    return None
            row = await session.get(TicketTable, ticket.id, populate_existing=True)
            return None if row is None else self._table_to_ticket(row)

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=int(row.id),
            title=row.title,
            description=row.description,
            location=row.location,
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            images=list(row.images) if row.images else None,
            created_by=row.created_by,
            assigned_to=row.assigned_to,
            vendor_id=row.vendor_id,
            created_at=ensure_datetime(row.created_at),
            updated_at=ensure_datetime(row.updated_at),
        )


def _same(column: Any, value: int | None) -> Any:
    return column.is_(None) if value is None else column == value
