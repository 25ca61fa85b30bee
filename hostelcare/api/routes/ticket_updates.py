from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, Request, UploadFile, status

from hostelcare.api.errors import http_error
from hostelcare.api.forms import incoming_files, submitted_text
from hostelcare.api.schemas import AuthorModel, TicketUpdateModel
from hostelcare.dependencies.auth import AdminUser, CurrentUser
from hostelcare.dependencies.services import UpdateLogDep
from hostelcare.errors import MaintenanceError

router = APIRouter(tags=["ticket updates"])


@router.post(
    "/tickets/{ticket_id}/updates",
    response_model=TicketUpdateModel,
    status_code=status.HTTP_201_CREATED,
)
async def add_ticket_update(
    ticket_id: int,
    request: Request,
    log: UpdateLogDep,
    user: CurrentUser,
    comment: Annotated[str | None, Form()] = None,
    cost: Annotated[str | None, Form()] = None,
    cost_type: Annotated[str | None, Form(alias="costType")] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
    receipt_images: Annotated[list[UploadFile] | None, File(alias="receiptImages")] = None,
) -> TicketUpdateModel:
    comment = await submitted_text(request, "comment", comment)
    try:
        update = await log.add_update(
            ticket_id,
            user,
            comment=comment,
            images=incoming_files(images),
            cost=cost,
            cost_type=cost_type,
            receipt_images=incoming_files(receipt_images),
        )
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    model = TicketUpdateModel.model_validate(update)
    return model.model_copy(update={"author": AuthorModel(id=user.id, username=user.username)})


@router.get("/tickets/{ticket_id}/updates", response_model=list[TicketUpdateModel])
async def list_ticket_updates(ticket_id: int, log: UpdateLogDep, user: CurrentUser) -> list[TicketUpdateModel]:
    try:
        entries = await log.list_updates(ticket_id, user)
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return [TicketUpdateModel.from_entry(entry) for entry in entries]


@router.get("/ticket-updates", response_model=list[TicketUpdateModel])
async def list_all_updates(log: UpdateLogDep, user: AdminUser) -> list[TicketUpdateModel]:
    try:
        entries = await log.list_all(user)
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return [TicketUpdateModel.from_entry(entry) for entry in entries]
