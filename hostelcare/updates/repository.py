from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, Sequence

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from hostelcare.db.models import TicketUpdateTable, UserTable
from hostelcare.db.session import ensure_datetime

from .models import CostTotals, CostType, TicketUpdate, TicketUpdateEntry

_CENTS = Decimal("0.01")


class UpdateStore(Protocol):
    async def add_update(
        self,
        *,
        ticket_id: int,
        comment: str,
        images: Sequence[str],
        cost: Decimal | None,
        cost_type: CostType | None,
        receipt_images: Sequence[str] | None,
        created_by: int,
        created_at: datetime,
    ) -> TicketUpdate:
        ...

    async def list_for_ticket(self, ticket_id: int) -> Sequence[TicketUpdateEntry]:
        ...

    async def list_all(self) -> Sequence[TicketUpdateEntry]:
        ...

    async def cost_totals(
        self,
        *,
        ticket_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> CostTotals:
        ...


class TicketUpdateRepository:
    """Persistence helper wrapping the append-only `ticket_updates` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_update(
        self,
        *,
        ticket_id: int,
        comment: str,
        images: Sequence[str],
        cost: Decimal | None,
        cost_type: CostType | None,
        receipt_images: Sequence[str] | None,
        created_by: int,
        created_at: datetime,
    ) -> TicketUpdate:
        async with self._session_factory() as session:
            async with session.begin():
                row = TicketUpdateTable(
                    ticket_id=ticket_id,
                    comment=comment,
                    images=list(images),
                    cost=cost,
                    cost_type=None if cost_type is None else cost_type.value,
                    receipt_images=list(receipt_images) if receipt_images else None,
                    created_by=created_by,
                    created_at=created_at,
                )
                session.add(row)
            return self._table_to_update(row)

    async def list_for_ticket(self, ticket_id: int) -> Sequence[TicketUpdateEntry]:
        return await self._fetch_entries(TicketUpdateTable.ticket_id == ticket_id)

    async def list_all(self) -> Sequence[TicketUpdateEntry]:
        return await self._fetch_entries()

    async def cost_totals(
        self,
        *,
        ticket_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> CostTotals:
        statement = (
            select(TicketUpdateTable.cost_type, func.sum(TicketUpdateTable.cost))
            .where(TicketUpdateTable.cost.is_not(None))
            .group_by(TicketUpdateTable.cost_type)
        )
        if ticket_id is not None:
            statement = statement.where(TicketUpdateTable.ticket_id == ticket_id)
        if start is not None:
            statement = statement.where(TicketUpdateTable.created_at >= start)
        if end is not None:
            statement = statement.where(TicketUpdateTable.created_at < end)

        totals = CostTotals()
        async with self._session_factory() as session:
            result = await session.execute(statement)
            for cost_type, amount in result.all():
                if cost_type is None or amount is None:
                    continue
                totals.by_type[CostType(cost_type)] = _to_money(amount)
        return totals

    async def _fetch_entries(self, *criteria: Any) -> Sequence[TicketUpdateEntry]:
        statement = select(TicketUpdateTable, UserTable.username).join(
            UserTable, UserTable.id == TicketUpdateTable.created_by, isouter=True
        )
        for criterion in criteria:
            statement = statement.where(criterion)
        statement = statement.order_by(TicketUpdateTable.id.asc())
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [
                TicketUpdateEntry(update=self._table_to_update(row), username=username)
                for row, username in result.all()
            ]

    @staticmethod
    def _table_to_update(row: TicketUpdateTable) -> TicketUpdate:
        return TicketUpdate(
            id=int(row.id),
            ticket_id=row.ticket_id,
            comment=row.comment,
            images=list(row.images or []),
            cost=None if row.cost is None else _to_money(row.cost),
            cost_type=None if row.cost_type is None else CostType(row.cost_type),
            receipt_images=list(row.receipt_images) if row.receipt_images else None,
            created_by=row.created_by,
            created_at=ensure_datetime(row.created_at),
        )


def _to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS)
