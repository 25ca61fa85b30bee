from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from hostelcare.access import STAFF_ROLES, TicketScope, authorize
from hostelcare.core.logging import get_tracer
from hostelcare.errors import (
    InvalidTransitionError,
    TicketNotFoundError,
    TransitionConflictError,
    UserNotFoundError,
    ValidationError,
)
from hostelcare.uploads import IncomingFile, UploadStore
from hostelcare.users.models import Role, User
from hostelcare.users.service import UserDirectory
from hostelcare.vendors.service import VendorDirectory

from .models import Ticket, TicketDetail
from .repository import TicketStore
from .state import TicketPriority, TicketStateMachine, TicketStatus

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


class TicketService:
    """High level orchestration for ticket creation, visibility and transitions."""

    def __init__(
        self,
        repository: TicketStore,
        *,
        users: UserDirectory,
        vendors: VendorDirectory,
        uploads: UploadStore,
        state_machine: TicketStateMachine | None = None,
    ) -> None:
        self._repository = repository
        self._users = users
        self._vendors = vendors
        self._uploads = uploads
        self._state_machine = state_machine or TicketStateMachine()

    @property
    def state_machine(self) -> TicketStateMachine:
        return self._state_machine

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        location: str,
        priority: TicketPriority,
        creator: User,
        images: Sequence[IncomingFile] = (),
    ) -> Ticket:
        title = _require_text(title, "title")
        description = _require_text(description, "description")
        location = _require_text(location, "location")

        stored = await self._uploads.save_all(images)
        try:
            ticket = await self._repository.create_ticket(
                title=title,
                description=description,
                location=location,
                status=self._state_machine.initial_state(),
                priority=priority,
                images=stored or None,
                created_by=creator.id,
                created_at=datetime.now(timezone.utc),
            )
        except Exception:
            await self._uploads.discard(stored)
            raise
        logger.info("Ticket %s opened by %s at %s", ticket.id, creator.username, ticket.location)
        return ticket

    async def list_tickets(self, viewer: User, *, status: TicketStatus | None = None) -> Sequence[Ticket]:
        return await self._repository.list_tickets(TicketScope.for_user(viewer), status=status)

    async def get_ticket(self, ticket_id: int, viewer: User) -> Ticket:
        """Fetch a ticket the viewer is allowed to see.

        Tickets outside the viewer's scope are reported as missing.
        """

        ticket = await self._repository.get_ticket(ticket_id)
        if ticket is None or not TicketScope.for_user(viewer).includes(
            created_by=ticket.created_by, assigned_to=ticket.assigned_to
        ):
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    async def get_ticket_detail(self, ticket_id: int, viewer: User) -> TicketDetail:
        ticket = await self.get_ticket(ticket_id, viewer)
        vendor = None
        if ticket.vendor_id is not None:
            vendor = await self._vendors.get_vendor(ticket.vendor_id)
        return TicketDetail(ticket=ticket, vendor=vendor)

    def allowed_transitions(self, ticket: Ticket, viewer: User) -> list[TicketStatus]:
        """Statuses ``viewer`` may move an already visible ``ticket`` to."""

        if viewer.role is Role.TENANT:
            return []
        return self._state_machine.allowed_targets(ticket.status, viewer.role)

    async def transition(
        self,
        ticket_id: int,
        actor: User,
        requested_status: TicketStatus,
        *,
        assigned_to: int | None = None,
        vendor_id: int | None = None,
    ) -> Ticket:
        with tracer.start_as_current_span("ticket.transition") as span:
            span.set_attribute("ticket.id", ticket_id)
            span.set_attribute("ticket.requested_status", requested_status.value)
            span.set_attribute("user.role", actor.role.value)
            return await self._transition(
                ticket_id, actor, requested_status, assigned_to=assigned_to, vendor_id=vendor_id
            )

    async def _transition(
        self,
        ticket_id: int,
        actor: User,
        requested_status: TicketStatus,
        *,
        assigned_to: int | None,
        vendor_id: int | None,
    ) -> Ticket:
        authorize(actor, STAFF_ROLES)

        # Decided before loading so the answer does not depend on which ticket was named.
        if not self._state_machine.reachable_by(requested_status, actor.role):
            raise InvalidTransitionError(
                f"A {actor.role.value} cannot move tickets to {requested_status.value}"
            )

        # Wardens only reach tickets assigned to them; anything else is reported as missing.
        current = await self.get_ticket(ticket_id, actor)

        updated = self._state_machine.apply(
            current,
            actor.role,
            requested_status,
            assigned_to=assigned_to,
            vendor_id=vendor_id,
        )

        if assigned_to is not None:
            try:
                await self._users.get_warden(assigned_to)
            except UserNotFoundError as exc:
                raise ValidationError(str(exc), field="assignedTo") from exc
        if vendor_id is not None:
            await self._vendors.get_selectable(vendor_id)

        saved = await self._repository.save_transition(updated, expected=current)
        if saved is None:
            if await self._repository.get_ticket(ticket_id) is None:
                raise TicketNotFoundError(f"Ticket {ticket_id} not found")
            raise TransitionConflictError(
                f"Ticket {ticket_id} changed while it was being updated; reload and try again"
            )

        logger.info(
            "Ticket %s moved %s -> %s by %s (%s)",
            ticket_id,
            current.status.value,
            saved.status.value,
            actor.username,
            actor.role.value,
        )
        return saved
