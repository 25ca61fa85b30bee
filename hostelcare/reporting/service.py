from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from hostelcare.access import ADMIN_ROLES, authorize
from hostelcare.tickets.models import Ticket
from hostelcare.tickets.service import TicketService
from hostelcare.tickets.state import TicketPriority, TicketStatus
from hostelcare.updates.models import CostTotals
from hostelcare.updates.service import UpdateLog
from hostelcare.users.models import User

_SECONDS_PER_DAY = 60 * 60 * 24


@dataclass(slots=True)
class TicketSummary:
    total: int
    by_status: dict[TicketStatus, int]
    by_priority: dict[TicketPriority, int]
    average_resolution_days: float
    top_locations: list[tuple[str, int]]
    costs: CostTotals = field(default_factory=CostTotals)


def summarize_tickets(tickets: Sequence[Ticket], *, top_n: int = 5) -> TicketSummary:
    """Count tickets by status, priority and location, and average resolution time.

    Resolution time is the span between creation and the last update of a
    resolved ticket, which is when it was approved.
    """

    by_status = {status: 0 for status in TicketStatus}
    by_priority = {priority: 0 for priority in TicketPriority}
    locations: Counter[str] = Counter()
    resolved_seconds: list[float] = []

    for ticket in tickets:
        by_status[ticket.status] += 1
        by_priority[ticket.priority] += 1
        locations[ticket.location] += 1
        if ticket.status is TicketStatus.RESOLVED:
            resolved_seconds.append((ticket.updated_at - ticket.created_at).total_seconds())

    average = sum(resolved_seconds) / len(resolved_seconds) / _SECONDS_PER_DAY if resolved_seconds else 0.0
    return TicketSummary(
        total=len(tickets),
        by_status=by_status,
        by_priority=by_priority,
        average_resolution_days=round(average, 2),
        top_locations=locations.most_common(top_n),
    )


class ReportingService:
    """Admin-facing analytics over tickets and their cost trail."""

    def __init__(self, *, tickets: TicketService, updates: UpdateLog) -> None:
        self._tickets = tickets
        self._updates = updates

    async def summary(
        self,
        viewer: User,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> TicketSummary:
        authorize(viewer, ADMIN_ROLES)
        tickets = await self._tickets.list_tickets(viewer)
        summary = summarize_tickets(tickets)
        summary.costs = await self._updates.cost_totals(start=start, end=end)
        return summary

    async def ticket_costs(self, viewer: User, ticket_id: int) -> CostTotals:
        authorize(viewer, ADMIN_ROLES)
        await self._tickets.get_ticket(ticket_id, viewer)
        return await self._updates.cost_totals(ticket_id=ticket_id)
