from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from hostelcare.reporting.service import ReportingService
from hostelcare.tickets.service import TicketService
from hostelcare.updates.service import UpdateLog
from hostelcare.users.service import UserDirectory
from hostelcare.vendors.service import VendorDirectory

from .auth import get_user_directory


def _state_service(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return service


async def get_ticket_service(request: Request) -> TicketService:
    return _state_service(request, "ticket_service", "Ticket service")


async def get_update_log(request: Request) -> UpdateLog:
    return _state_service(request, "update_log", "Ticket update log")


async def get_vendor_directory(request: Request) -> VendorDirectory:
    return _state_service(request, "vendor_directory", "Vendor directory")


async def get_reporting_service(request: Request) -> ReportingService:
    return _state_service(request, "reporting_service", "Reporting service")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
UpdateLogDep = Annotated[UpdateLog, Depends(get_update_log)]
VendorDirectoryDep = Annotated[VendorDirectory, Depends(get_vendor_directory)]
ReportingServiceDep = Annotated[ReportingService, Depends(get_reporting_service)]
UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]
