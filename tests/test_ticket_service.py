from __future__ import annotations

import io
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from factories import make_ticket
from hostelcare.access import TicketScope
from hostelcare.errors import (
    InvalidTransitionError,
    MissingAssigneeError,
    TicketNotFoundError,
    TransitionConflictError,
    UnauthorizedError,
    UserNotFoundError,
    ValidationError,
)
from hostelcare.tickets.service import TicketService
from hostelcare.tickets.state import TicketPriority, TicketStatus
from hostelcare.uploads import IncomingFile
from hostelcare.users.models import Role, User
from hostelcare.vendors.models import Vendor


class DummyRepository:
    def __init__(self, *tickets) -> None:
        self.tickets = {ticket.id: ticket for ticket in tickets}
        self.saved: list = []
        self.fail_create = False
        self.steal_with: TicketStatus | None = None

    async def create_ticket(self, **fields):
        if self.fail_create:
            raise RuntimeError("database unavailable")
        ticket = replace(
            make_ticket(ticket_id=len(self.tickets) + 1),
            title=fields["title"],
            description=fields["description"],
            location=fields["location"],
            status=fields["status"],
            priority=fields["priority"],
            images=fields["images"],
            created_by=fields["created_by"],
        )
        self.tickets[ticket.id] = ticket
        return ticket

    async def get_ticket(self, ticket_id):
        return self.tickets.get(ticket_id)

    async def list_tickets(self, scope: TicketScope, *, status=None):
        return [
            ticket
            for ticket in self.tickets.values()
            if scope.includes(created_by=ticket.created_by, assigned_to=ticket.assigned_to)
            and (status is None or ticket.status is status)
        ]

    async def save_transition(self, ticket, *, expected):
        if self.steal_with is not None:
            self.tickets[ticket.id] = replace(self.tickets[ticket.id], status=self.steal_with)
        stored = self.tickets.get(ticket.id)
        if stored is None or _lifecycle(stored) != _lifecycle(expected):
            return None
        self.tickets[ticket.id] = ticket
        self.saved.append(ticket)
        return ticket


def _lifecycle(ticket):
    return ticket.status, ticket.assigned_to, ticket.vendor_id


def _vendor(vendor_id: int = 7, *, active: bool = True) -> Vendor:
    return Vendor(
        id=vendor_id,
        name="FixIt Plumbing",
        specialization="plumbing",
        contact_number="555-0100",
        email=None,
        is_active=active,
        created_at=make_ticket().created_at,
    )


@pytest.fixture
def users(warden):
    directory = AsyncMock()
    directory.get_warden.return_value = warden
    return directory


@pytest.fixture
def vendors():
    directory = AsyncMock()
    directory.get_selectable.return_value = _vendor()
    directory.get_vendor.return_value = _vendor()
    return directory


@pytest.fixture
def uploads():
    store = AsyncMock()
    store.save_all.return_value = []
    return store


def _service(repository, users, vendors, uploads) -> TicketService:
    return TicketService(repository, users=users, vendors=vendors, uploads=uploads)


@pytest.mark.asyncio
async def test_create_ticket_starts_open(users, vendors, uploads, tenant):
    repository = DummyRepository()
    service = _service(repository, users, vendors, uploads)

    ticket = await service.create_ticket(
        title="  Broken window ",
        description="Glass cracked",
        location="Block B, Room 4",
        priority=TicketPriority.URGENT,
        creator=tenant,
    )

    assert ticket.status is TicketStatus.OPEN
    assert ticket.priority is TicketPriority.URGENT
    assert ticket.title == "Broken window"
    assert ticket.created_by == tenant.id
    assert ticket.assigned_to is None and ticket.vendor_id is None


@pytest.mark.asyncio
async def test_create_ticket_rejects_blank_fields(users, vendors, uploads, tenant):
    service = _service(DummyRepository(), users, vendors, uploads)
    with pytest.raises(ValidationError) as exc:
        await service.create_ticket(
            title="   ", description="x", location="y", priority=TicketPriority.LOW, creator=tenant
        )
    assert exc.value.field == "title"
    uploads.save_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_ticket_discards_uploads_when_storage_fails(users, vendors, uploads, tenant):
    repository = DummyRepository()
    repository.fail_create = True
    uploads.save_all.return_value = ["uploads/a.png"]
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(RuntimeError):
        await service.create_ticket(
            title="Leak",
            description="Water on floor",
            location="Block A",
            priority=TicketPriority.HIGH,
            creator=tenant,
            images=[IncomingFile("a.png", io.BytesIO(b"png"))],
        )

    uploads.discard.assert_awaited_once_with(["uploads/a.png"])


@pytest.mark.asyncio
async def test_admin_assigns_warden(users, vendors, uploads, admin, warden):
    repository = DummyRepository(make_ticket())
    service = _service(repository, users, vendors, uploads)

    ticket = await service.transition(1, admin, TicketStatus.IN_PROGRESS, assigned_to=warden.id)

    assert ticket.status is TicketStatus.IN_PROGRESS
    assert ticket.assigned_to == warden.id
    users.get_warden.assert_awaited_once_with(warden.id)


@pytest.mark.asyncio
async def test_assignment_requires_assignee(users, vendors, uploads, admin):
    repository = DummyRepository(make_ticket())
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(MissingAssigneeError):
        await service.transition(1, admin, TicketStatus.IN_PROGRESS)
    assert repository.saved == []


@pytest.mark.asyncio
async def test_assignee_must_exist(users, vendors, uploads, admin):
    users.get_warden.side_effect = UserNotFoundError("User 42 not found")
    service = _service(DummyRepository(make_ticket()), users, vendors, uploads)

    with pytest.raises(ValidationError) as exc:
        await service.transition(1, admin, TicketStatus.IN_PROGRESS, assigned_to=42)
    assert exc.value.field == "assignedTo"


@pytest.mark.asyncio
async def test_tenant_cannot_transition(users, vendors, uploads, tenant):
    repository = DummyRepository(make_ticket())
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(UnauthorizedError):
        await service.transition(1, tenant, TicketStatus.CANCELLED)
    assert repository.tickets[1].status is TicketStatus.OPEN


@pytest.mark.asyncio
async def test_warden_cannot_skip_to_resolved(users, vendors, uploads, warden):
    repository = DummyRepository(make_ticket(assigned_to=warden.id))
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(InvalidTransitionError):
        await service.transition(1, warden, TicketStatus.RESOLVED)
    assert repository.saved == []


@pytest.mark.asyncio
async def test_unassigned_ticket_is_missing_for_warden(users, vendors, uploads, warden):
    repository = DummyRepository(make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to=99))
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(TicketNotFoundError):
        await service.transition(1, warden, TicketStatus.NEEDS_VENDOR)
    assert repository.saved == []


@pytest.mark.asyncio
async def test_unreachable_target_rejected_before_lookup(users, vendors, uploads, warden):
    repository = DummyRepository(make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to=99))
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(InvalidTransitionError) as assigned_elsewhere:
        await service.transition(1, warden, TicketStatus.RESOLVED)
    with pytest.raises(InvalidTransitionError) as missing:
        await service.transition(42, warden, TicketStatus.RESOLVED)

    assert str(assigned_elsewhere.value) == str(missing.value)
    assert "in_progress" not in str(assigned_elsewhere.value)


@pytest.mark.asyncio
async def test_stale_vendor_choice_is_a_conflict(users, vendors, uploads, admin):
    repository = DummyRepository(make_ticket(status=TicketStatus.NEEDS_VENDOR, assigned_to=2, vendor_id=10))
    service = _service(repository, users, vendors, uploads)
    original_get = repository.get_ticket

    async def get_then_reselect(ticket_id):
        snapshot = await original_get(ticket_id)
        repository.tickets[ticket_id] = replace(snapshot, vendor_id=20)
        repository.get_ticket = original_get
        return snapshot

    repository.get_ticket = get_then_reselect

    with pytest.raises(TransitionConflictError):
        await service.transition(1, admin, TicketStatus.VENDOR_ASSIGNED)
    assert repository.tickets[1].vendor_id == 20
    assert repository.tickets[1].status is TicketStatus.NEEDS_VENDOR


@pytest.mark.asyncio
async def test_warden_selects_active_vendor(users, vendors, uploads, warden):
    repository = DummyRepository(make_ticket(status=TicketStatus.NEEDS_VENDOR, assigned_to=warden.id))
    service = _service(repository, users, vendors, uploads)

    ticket = await service.transition(1, warden, TicketStatus.NEEDS_VENDOR, vendor_id=7)

    assert ticket.vendor_id == 7
    vendors.get_selectable.assert_awaited_once_with(7)


@pytest.mark.asyncio
async def test_inactive_vendor_is_not_selectable(users, vendors, uploads, warden):
    vendors.get_selectable.side_effect = ValidationError("inactive", field="vendorId")
    repository = DummyRepository(make_ticket(status=TicketStatus.NEEDS_VENDOR, assigned_to=warden.id))
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(ValidationError):
        await service.transition(1, warden, TicketStatus.NEEDS_VENDOR, vendor_id=7)
    assert repository.tickets[1].vendor_id is None


@pytest.mark.asyncio
async def test_missing_ticket_is_reported(users, vendors, uploads, admin):
    service = _service(DummyRepository(), users, vendors, uploads)
    with pytest.raises(TicketNotFoundError):
        await service.transition(5, admin, TicketStatus.CANCELLED)


@pytest.mark.asyncio
async def test_concurrent_change_is_a_conflict(users, vendors, uploads, admin):
    repository = DummyRepository(make_ticket())
    repository.steal_with = TicketStatus.CANCELLED
    service = _service(repository, users, vendors, uploads)

    with pytest.raises(TransitionConflictError):
        await service.transition(1, admin, TicketStatus.ESCALATED)
    assert repository.tickets[1].status is TicketStatus.CANCELLED


@pytest.mark.asyncio
async def test_visibility_follows_role(users, vendors, uploads, admin, warden, tenant):
    repository = DummyRepository(
        make_ticket(ticket_id=1, created_by=tenant.id),
        make_ticket(ticket_id=2, created_by=tenant.id, assigned_to=warden.id),
        make_ticket(ticket_id=3, created_by=50, assigned_to=51),
    )
    service = _service(repository, users, vendors, uploads)

    assert {t.id for t in await service.list_tickets(admin)} == {1, 2, 3}
    assert {t.id for t in await service.list_tickets(tenant)} == {1, 2}
    assert {t.id for t in await service.list_tickets(warden)} == {2}

    with pytest.raises(TicketNotFoundError):
        await service.get_ticket(3, tenant)
    with pytest.raises(TicketNotFoundError):
        await service.get_ticket(1, warden)


@pytest.mark.asyncio
async def test_detail_resolves_vendor(users, vendors, uploads, admin):
    repository = DummyRepository(make_ticket(status=TicketStatus.VENDOR_ASSIGNED, vendor_id=7))
    vendors.get_vendor.return_value = _vendor(active=False)
    service = _service(repository, users, vendors, uploads)

    detail = await service.get_ticket_detail(1, admin)

    assert detail.vendor is not None
    assert detail.vendor.name == "FixIt Plumbing"
    assert not detail.vendor.is_active


def test_allowed_transitions_by_role(users, vendors, uploads):
    ticket = make_ticket(status=TicketStatus.IN_PROGRESS, created_by=3, assigned_to=2)
    service = _service(DummyRepository(ticket), users, vendors, uploads)

    warden_targets = service.allowed_transitions(ticket, User(2, "w", Role.WARDEN))
    tenant_targets = service.allowed_transitions(ticket, User(3, "t", Role.TENANT))

    assert set(warden_targets) == {TicketStatus.NEEDS_VENDOR, TicketStatus.PENDING_APPROVAL}
    assert tenant_targets == []
