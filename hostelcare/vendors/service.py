from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

from hostelcare.access import ADMIN_ROLES, authorize
from hostelcare.errors import ValidationError, VendorNotFoundError
from hostelcare.users.models import User

from .models import Vendor
from .repository import UPDATABLE_FIELDS

logger = logging.getLogger(__name__)

_REQUIRED_TEXT = ("name", "specialization", "contact_number")


class VendorStore(Protocol):
    async def create_vendor(
        self,
        *,
        name: str,
        specialization: str,
        contact_number: str,
        email: str | None,
        is_active: bool = True,
    ) -> Vendor:
        ...

    async def get_vendor(self, vendor_id: int) -> Vendor | None:
        ...

    async def list_vendors(self, *, active_only: bool = False) -> Sequence[Vendor]:
        ...

    async def update_vendor(self, vendor_id: int, changes: dict[str, Any]) -> Vendor | None:
        ...


class VendorDirectory:
    """Registry of service providers.

    Vendors are never deleted. Deactivating one only hides it from selection
    lists; tickets that already reference it keep resolving it by id.
    """

    def __init__(self, repository: VendorStore) -> None:
        self._repository = repository

    async def list_vendors(self, *, active_only: bool = False) -> Sequence[Vendor]:
        return await self._repository.list_vendors(active_only=active_only)

    async def list_active(self) -> Sequence[Vendor]:
        return await self._repository.list_vendors(active_only=True)

    async def get_vendor(self, vendor_id: int) -> Vendor:
        vendor = await self._repository.get_vendor(vendor_id)
        if vendor is None:
            raise VendorNotFoundError(f"Vendor {vendor_id} not found")
        return vendor

    async def get_selectable(self, vendor_id: int) -> Vendor:
        """Return the vendor if it may be linked to a ticket right now."""

        try:
            vendor = await self.get_vendor(vendor_id)
        except VendorNotFoundError as exc:
            raise ValidationError(str(exc), field="vendorId") from exc
        if not vendor.is_active:
            raise ValidationError(f"Vendor {vendor.name!r} is inactive and cannot be selected", field="vendorId")
        return vendor

    async def create(
        self,
        actor: User,
        *,
        name: str,
        specialization: str,
        contact_number: str,
        email: str | None = None,
        is_active: bool = True,
    ) -> Vendor:
        authorize(actor, ADMIN_ROLES)
        values = {"name": name, "specialization": specialization, "contact_number": contact_number}
        for field in _REQUIRED_TEXT:
            if not values[field].strip():
                raise ValidationError(f"{field} must not be empty", field=field)
        vendor = await self._repository.create_vendor(
            name=name.strip(),
            specialization=specialization.strip(),
            contact_number=contact_number.strip(),
            email=email,
            is_active=is_active,
        )
        logger.info("Vendor %s created by %s", vendor.id, actor.username)
        return vendor

    async def update(self, actor: User, vendor_id: int, **changes: Any) -> Vendor:
        authorize(actor, ADMIN_ROLES)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported vendor fields: {', '.join(sorted(unknown))}")
        for field in _REQUIRED_TEXT:
            if field in changes and (changes[field] is None or not str(changes[field]).strip()):
                raise ValidationError(f"{field} must not be empty", field=field)
        if "is_active" in changes and changes["is_active"] is None:
            raise ValidationError("is_active must be true or false", field="is_active")

        if not changes:
            return await self.get_vendor(vendor_id)
        vendor = await self._repository.update_vendor(vendor_id, changes)
        if vendor is None:
            raise VendorNotFoundError(f"Vendor {vendor_id} not found")
        if changes.get("is_active") is False:
            logger.info("Vendor %s deactivated by %s", vendor_id, actor.username)
        return vendor
