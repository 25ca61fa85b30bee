from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from pydantic import ConfigDict

from hostelcare.api.errors import http_error
from hostelcare.api.forms import incoming_files
from hostelcare.api.schemas import CamelModel, TicketDetailModel, TicketModel
from hostelcare.dependencies.auth import CurrentUser, StaffUser, TicketAuthor
from hostelcare.dependencies.services import TicketServiceDep
from hostelcare.errors import MaintenanceError
from hostelcare.tickets.state import TicketPriority, TicketStatus

router = APIRouter(prefix="/tickets", tags=["tickets"])


class TicketTransitionRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    status: TicketStatus
    assigned_to: int | None = None
    vendor_id: int | None = None


class TicketTransitionsModel(CamelModel):
    current: TicketStatus
    allowed: list[TicketStatus]


@router.post("", response_model=TicketModel, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    service: TicketServiceDep,
    author: TicketAuthor,
    title: Annotated[str, Form(min_length=1, max_length=255)],
    description: Annotated[str, Form(min_length=1)],
    location: Annotated[str, Form(min_length=1, max_length=255)],
    priority: Annotated[TicketPriority, Form()],
    images: Annotated[list[UploadFile] | None, File()] = None,
) -> TicketModel:
    try:
        ticket = await service.create_ticket(
            title=title,
            description=description,
            location=location,
            priority=priority,
            creator=author,
            images=incoming_files(images),
        )
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return TicketModel.model_validate(ticket)


@router.get("", response_model=list[TicketModel])
async def list_tickets(
    service: TicketServiceDep,
    user: CurrentUser,
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
) -> list[TicketModel]:
    tickets = await service.list_tickets(user, status=status_filter)
    return [TicketModel.model_validate(ticket) for ticket in tickets]


@router.get("/{ticket_id}", response_model=TicketDetailModel)
async def get_ticket(ticket_id: int, service: TicketServiceDep, user: CurrentUser) -> TicketDetailModel:
    try:
        detail = await service.get_ticket_detail(ticket_id, user)
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return TicketDetailModel.from_detail(detail)


@router.get("/{ticket_id}/transitions", response_model=TicketTransitionsModel)
async def get_ticket_transitions(
    ticket_id: int, service: TicketServiceDep, user: CurrentUser
) -> TicketTransitionsModel:
    try:
        ticket = await service.get_ticket(ticket_id, user)
        allowed = service.allowed_transitions(ticket, user)
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return TicketTransitionsModel(current=ticket.status, allowed=allowed)


@router.patch("/{ticket_id}", response_model=TicketModel)
async def transition_ticket(
    ticket_id: int,
    payload: TicketTransitionRequest,
    service: TicketServiceDep,
    user: StaffUser,
) -> TicketModel:
    try:
        ticket = await service.transition(
            ticket_id,
            user,
            payload.status,
            assigned_to=payload.assigned_to,
            vendor_id=payload.vendor_id,
        )
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return TicketModel.model_validate(ticket)
