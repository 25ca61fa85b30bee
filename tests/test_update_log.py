from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from factories import make_ticket
from hostelcare.errors import TicketNotFoundError, UnauthorizedError, ValidationError
from hostelcare.updates.models import CostTotals, CostType, TicketUpdate
from hostelcare.updates.service import UpdateLog, parse_cost, parse_cost_type
from hostelcare.uploads import IncomingFile


def _stored_update(**fields) -> TicketUpdate:
    return TicketUpdate(
        id=1,
        ticket_id=fields["ticket_id"],
        comment=fields["comment"],
        images=fields["images"],
        cost=fields["cost"],
        cost_type=fields["cost_type"],
        receipt_images=fields["receipt_images"],
        created_by=fields["created_by"],
        created_at=fields["created_at"],
    )


@pytest.fixture
def repository():
    store = AsyncMock()
    store.add_update.side_effect = lambda **fields: _stored_update(**fields)
    store.cost_totals.return_value = CostTotals()
    return store


@pytest.fixture
def tickets():
    service = AsyncMock()
    service.get_ticket.return_value = make_ticket()
    return service


@pytest.fixture
def uploads():
    store = AsyncMock()
    store.save_all.return_value = []
    return store


def test_parse_cost_accepts_two_decimal_amounts():
    assert parse_cost("150.5") == Decimal("150.50")
    assert parse_cost(" 0 ") == Decimal("0.00")
    assert parse_cost("12.500") == Decimal("12.50")
    assert parse_cost("") is None
    assert parse_cost(None) is None


@pytest.mark.parametrize("raw", ["abc", "-1", "NaN", "1e12", "1.005", "0.001"])
def test_parse_cost_rejects_bad_amounts(raw):
    with pytest.raises(ValidationError) as exc:
        parse_cost(raw)
    assert exc.value.field == "cost"


def test_parse_cost_type():
    assert parse_cost_type("vendor") is CostType.VENDOR
    assert parse_cost_type("") is None
    with pytest.raises(ValidationError):
        parse_cost_type("labour")


@pytest.mark.asyncio
async def test_comment_must_be_present(repository, tickets, uploads, tenant):
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)
    with pytest.raises(ValidationError) as exc:
        await log.add_update(1, tenant, comment=None)
    assert exc.value.field == "comment"
    repository.add_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_comment_is_accepted(repository, tickets, uploads, tenant):
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)

    update = await log.add_update(1, tenant, comment="")

    assert update.comment == ""
    assert update.created_by == tenant.id
    assert update.cost is None


@pytest.mark.asyncio
async def test_cost_and_cost_type_go_together(repository, tickets, uploads, warden):
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)

    with pytest.raises(ValidationError) as missing_type:
        await log.add_update(1, warden, comment="Paid", cost="10")
    with pytest.raises(ValidationError) as missing_cost:
        await log.add_update(1, warden, comment="Paid", cost_type="repair")

    assert missing_type.value.field == "costType"
    assert missing_cost.value.field == "cost"

    update = await log.add_update(1, warden, comment="Paid", cost="150.50", cost_type="vendor")
    assert update.cost == Decimal("150.50")
    assert update.cost_type is CostType.VENDOR


@pytest.mark.asyncio
async def test_update_requires_visible_ticket(repository, tickets, uploads, tenant):
    tickets.get_ticket.side_effect = TicketNotFoundError("Ticket 9 not found")
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)

    with pytest.raises(TicketNotFoundError):
        await log.add_update(9, tenant, comment="hello")
    uploads.save_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_appending_leaves_ticket_untouched(repository, tickets, uploads, warden):
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)

    await log.add_update(1, warden, comment="Checked the valve")

    tickets.transition.assert_not_called()
    tickets.get_ticket.assert_awaited_once_with(1, warden)


@pytest.mark.asyncio
async def test_uploads_discarded_when_write_fails(repository, tickets, uploads, warden):
    uploads.save_all.side_effect = [["uploads/photo.jpg"], ["uploads/receipt.jpg"]]
    repository.add_update.side_effect = RuntimeError("database unavailable")
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)

    with pytest.raises(RuntimeError):
        await log.add_update(
            1,
            warden,
            comment="Replaced pipe",
            images=[IncomingFile("photo.jpg", io.BytesIO(b"jpg"))],
            receipt_images=[IncomingFile("receipt.jpg", io.BytesIO(b"jpg"))],
        )

    uploads.discard.assert_awaited_once_with(["uploads/photo.jpg", "uploads/receipt.jpg"])


@pytest.mark.asyncio
async def test_full_log_is_admin_only(repository, tickets, uploads, admin, warden):
    repository.list_all.return_value = []
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)

    assert await log.list_all(admin) == []
    with pytest.raises(UnauthorizedError):
        await log.list_all(warden)


@pytest.mark.asyncio
async def test_cost_window_must_be_ordered(repository, tickets, uploads):
    log = UpdateLog(repository, tickets=tickets, uploads=uploads)
    now = datetime.now(timezone.utc)

    with pytest.raises(ValidationError):
        await log.cost_totals(start=now, end=now - timedelta(days=1))

    await log.cost_totals(start=now - timedelta(days=7), end=now)
    repository.cost_totals.assert_awaited_once()
