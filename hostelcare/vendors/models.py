from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Vendor:
    """Service provider that can be engaged on a ticket."""

    id: int
    name: str
    specialization: str
    contact_number: str
    email: str | None
    is_active: bool
    created_at: datetime
