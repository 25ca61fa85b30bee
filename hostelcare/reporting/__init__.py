"""Aggregate ticket and cost reporting for admins."""

from .service import ReportingService, TicketSummary

__all__ = ["ReportingService", "TicketSummary"]
