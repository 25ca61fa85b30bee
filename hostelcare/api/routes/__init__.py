"""Route modules exposed by the API package."""

from . import analytics, ping, ticket_updates, tickets, users, vendors

__all__ = ["analytics", "ping", "ticket_updates", "tickets", "users", "vendors"]
