from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query

from hostelcare.api.errors import http_error
from hostelcare.api.schemas import CamelModel, CostTotalsModel
from hostelcare.dependencies.auth import AdminUser
from hostelcare.dependencies.services import ReportingServiceDep
from hostelcare.errors import MaintenanceError
from hostelcare.tickets.state import TicketPriority, TicketStatus

router = APIRouter(prefix="/analytics", tags=["analytics"])


class LocationCountModel(CamelModel):
    location: str
    count: int


class TicketSummaryModel(CamelModel):
    total: int
    by_status: dict[TicketStatus, int]
    by_priority: dict[TicketPriority, int]
    average_resolution_days: float
    top_locations: list[LocationCountModel]
    costs: CostTotalsModel


@router.get("/summary", response_model=TicketSummaryModel)
async def get_summary(
    service: ReportingServiceDep,
    user: AdminUser,
    start: datetime | None = Query(default=None, description="Only count costs logged at or after this time"),
    end: datetime | None = Query(default=None, description="Only count costs logged before this time"),
) -> TicketSummaryModel:
    try:
        summary = await service.summary(user, start=start, end=end)
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return TicketSummaryModel(
        total=summary.total,
        by_status=summary.by_status,
        by_priority=summary.by_priority,
        average_resolution_days=summary.average_resolution_days,
        top_locations=[LocationCountModel(location=name, count=count) for name, count in summary.top_locations],
        costs=CostTotalsModel.from_totals(summary.costs),
    )


@router.get("/tickets/{ticket_id}/costs", response_model=CostTotalsModel)
async def get_ticket_costs(ticket_id: int, service: ReportingServiceDep, user: AdminUser) -> CostTotalsModel:
    try:
        totals = await service.ticket_costs(user, ticket_id)
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return CostTotalsModel.from_totals(totals)
