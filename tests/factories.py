from __future__ import annotations

from datetime import datetime, timezone

from hostelcare.tickets.models import Ticket
from hostelcare.tickets.state import TicketPriority, TicketStatus


def make_ticket(
    *,
    ticket_id: int = 1,
    status: TicketStatus = TicketStatus.OPEN,
    created_by: int = 3,
    assigned_to: int | None = None,
    vendor_id: int | None = None,
    priority: TicketPriority = TicketPriority.MEDIUM,
    location: str = "Block B, Room 12",
) -> Ticket:
    now = datetime.now(timezone.utc)
    return Ticket(
        id=ticket_id,
        title="Leaking tap",
        description="Bathroom tap drips all night",
        location=location,
        status=status,
        priority=priority,
        images=None,
        created_by=created_by,
        assigned_to=assigned_to,
        vendor_id=vendor_id,
        created_at=now,
        updated_at=now,
    )
