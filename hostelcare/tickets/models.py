from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from hostelcare.vendors.models import Vendor

from .state import TicketPriority, TicketStatus


@dataclass(slots=True)
class Ticket:
    """A maintenance request and its lifecycle fields."""

    id: int
    title: str
    description: str
    location: str
    status: TicketStatus
    priority: TicketPriority
    images: Sequence[str] | None
    created_by: int
    assigned_to: int | None
    vendor_id: int | None
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class TicketDetail:
    """Ticket bundled with the vendor it references, active or not."""

    ticket: Ticket
    vendor: Vendor | None
