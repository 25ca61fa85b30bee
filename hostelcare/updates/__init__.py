"""Append-only comment and cost trail for tickets."""

from .models import CostTotals, CostType, TicketUpdate, TicketUpdateEntry
from .repository import TicketUpdateRepository, UpdateStore
from .service import UpdateLog

__all__ = [
    "CostTotals",
    "CostType",
    "TicketUpdate",
    "TicketUpdateEntry",
    "TicketUpdateRepository",
    "UpdateLog",
    "UpdateStore",
]
