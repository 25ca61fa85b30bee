"""Response models shared by the route modules.

JSON field names are camelCase; Python attribute names stay snake_case.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from hostelcare.tickets.models import TicketDetail
from hostelcare.tickets.state import TicketPriority, TicketStatus
from hostelcare.updates.models import CostTotals, CostType, TicketUpdateEntry
from hostelcare.users.models import Role


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserModel(CamelModel):
    id: int
    username: str
    role: Role
    hostel_block: str | None = None


class VendorModel(CamelModel):
    id: int
    name: str
    specialization: str
    contact_number: str
    email: str | None
    is_active: bool
    created_at: datetime


class VendorSummaryModel(CamelModel):
    id: int
    name: str
    specialization: str
    is_active: bool


class TicketModel(CamelModel):
    id: int
    title: str
    description: str
    location: str
    status: TicketStatus
    priority: TicketPriority
    images: list[str] | None
    created_by: int
    assigned_to: int | None
    vendor_id: int | None
    created_at: datetime
    updated_at: datetime


class TicketDetailModel(TicketModel):
    vendor: VendorSummaryModel | None = None

    @classmethod
    def from_detail(cls, detail: TicketDetail) -> "TicketDetailModel":
        base = TicketModel.model_validate(detail.ticket)
        vendor = None if detail.vendor is None else VendorSummaryModel.model_validate(detail.vendor)
        return cls(**base.model_dump(), vendor=vendor)


class AuthorModel(CamelModel):
    id: int
    username: str | None


class TicketUpdateModel(CamelModel):
    id: int
    ticket_id: int
    comment: str
    images: list[str]
    cost: Decimal | None
    cost_type: CostType | None
    receipt_images: list[str] | None
    created_by: int
    created_at: datetime
    author: AuthorModel | None = None

    @classmethod
    def from_entry(cls, entry: TicketUpdateEntry) -> "TicketUpdateModel":
        base = cls.model_validate(entry.update)
        return base.model_copy(update={"author": AuthorModel(id=entry.update.created_by, username=entry.username)})


class CostTotalsModel(CamelModel):
    repair: Decimal
    vendor: Decimal
    total: Decimal

    @classmethod
    def from_totals(cls, totals: CostTotals) -> "CostTotalsModel":
        return cls(repair=totals.repair, vendor=totals.vendor, total=totals.total)
