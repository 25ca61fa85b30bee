"""Database models and utilities."""

from .models import TicketTable, TicketUpdateTable, UserTable, VendorTable

__all__ = [
    "TicketTable",
    "TicketUpdateTable",
    "UserTable",
    "VendorTable",
]
