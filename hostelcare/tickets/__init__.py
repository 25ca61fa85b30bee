"""Ticket domain models and services."""

from .models import Ticket, TicketDetail
from .repository import TicketRepository, TicketStore
from .service import TicketService
from .state import TicketPriority, TicketStateMachine, TicketStatus, TransitionRule

__all__ = [
    "Ticket",
    "TicketDetail",
    "TicketPriority",
    "TicketRepository",
    "TicketService",
    "TicketStateMachine",
    "TicketStatus",
    "TicketStore",
    "TransitionRule",
]
