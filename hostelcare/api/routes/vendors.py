from __future__ import annotations

from fastapi import APIRouter, Query, status
from pydantic import ConfigDict, EmailStr, Field

from hostelcare.api.errors import http_error
from hostelcare.api.schemas import CamelModel, VendorModel
from hostelcare.dependencies.auth import AdminUser, StaffUser
from hostelcare.dependencies.services import VendorDirectoryDep
from hostelcare.errors import MaintenanceError

router = APIRouter(prefix="/vendors", tags=["vendors"])


class VendorCreateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    specialization: str = Field(..., min_length=1, max_length=255)
    contact_number: str = Field(..., min_length=1, max_length=50)
    email: EmailStr | None = None
    is_active: bool = True


class VendorUpdateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    specialization: str | None = Field(default=None, min_length=1, max_length=255)
    contact_number: str | None = Field(default=None, min_length=1, max_length=50)
    email: EmailStr | None = None
    is_active: bool | None = None


@router.get("", response_model=list[VendorModel])
async def list_vendors(
    directory: VendorDirectoryDep,
    _: StaffUser,
    active: bool | None = Query(default=None, description="Only return active vendors when true"),
) -> list[VendorModel]:
    vendors = await directory.list_vendors(active_only=bool(active))
    return [VendorModel.model_validate(vendor) for vendor in vendors]


@router.post("", response_model=VendorModel, status_code=status.HTTP_201_CREATED)
async def create_vendor(payload: VendorCreateRequest, directory: VendorDirectoryDep, user: AdminUser) -> VendorModel:
    try:
        vendor = await directory.create(
            user,
            name=payload.name,
            specialization=payload.specialization,
            contact_number=payload.contact_number,
            email=payload.email,
            is_active=payload.is_active,
        )
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return VendorModel.model_validate(vendor)


@router.patch("/{vendor_id}", response_model=VendorModel)
async def update_vendor(
    vendor_id: int,
    payload: VendorUpdateRequest,
    directory: VendorDirectoryDep,
    user: AdminUser,
) -> VendorModel:
    try:
        vendor = await directory.update(user, vendor_id, **payload.model_dump(exclude_unset=True))
    except MaintenanceError as exc:
        raise http_error(exc) from exc
    return VendorModel.model_validate(vendor)
