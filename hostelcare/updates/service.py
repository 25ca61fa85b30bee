from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Sequence

from hostelcare.access import ADMIN_ROLES, authorize
from hostelcare.errors import ValidationError
from hostelcare.tickets.service import TicketService
from hostelcare.uploads import IncomingFile, UploadStore
from hostelcare.users.models import User

from .models import CostTotals, CostType, TicketUpdate, TicketUpdateEntry
from .repository import UpdateStore

logger = logging.getLogger(__name__)

_MAX_COST = Decimal("99999999.99")
_CENTS = Decimal("0.01")


def parse_cost(raw: str | Decimal | None) -> Decimal | None:
    """Convert a submitted cost into a two decimal amount, ``None`` when blank."""

    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Cost {raw!r} is not a number", field="cost") from exc
    if not amount.is_finite():
        raise ValidationError("Cost must be a finite number", field="cost")
    if amount < 0:
        raise ValidationError("Cost cannot be negative", field="cost")
    if amount > _MAX_COST:
        raise ValidationError("Cost is too large", field="cost")
    rounded = amount.quantize(_CENTS)
    if rounded != amount:
        raise ValidationError("Cost cannot have more than two decimal places", field="cost")
    return rounded


def parse_cost_type(raw: str | CostType | None) -> CostType | None:
    if raw is None or isinstance(raw, CostType):
        return raw
    raw = raw.strip()
    if not raw:
        return None
    try:
        return CostType(raw)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in CostType)
        raise ValidationError(f"costType must be one of: {allowed}", field="costType") from exc


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UpdateLog:
    """Append-only commentary and cost trail attached to tickets.

    Appending never touches the parent ticket's lifecycle fields.
    """

    def __init__(self, repository: UpdateStore, *, tickets: TicketService, uploads: UploadStore) -> None:
        self._repository = repository
        self._tickets = tickets
        self._uploads = uploads

    async def add_update(
        self,
        ticket_id: int,
        actor: User,
        *,
        comment: str | None,
        images: Sequence[IncomingFile] = (),
        cost: str | Decimal | None = None,
        cost_type: str | CostType | None = None,
        receipt_images: Sequence[IncomingFile] = (),
    ) -> TicketUpdate:
        if comment is None:
            raise ValidationError("comment is required (it may be empty)", field="comment")
        amount = parse_cost(cost)
        kind = parse_cost_type(cost_type)
        if amount is not None and kind is None:
            raise ValidationError("costType is required when a cost is given", field="costType")
        if amount is None and kind is not None:
            raise ValidationError("costType was given without a cost", field="cost")

        await self._tickets.get_ticket(ticket_id, actor)

        stored_images = await self._uploads.save_all(images)
        stored_receipts: list[str] = []
        try:
            stored_receipts = await self._uploads.save_all(receipt_images)
            update = await self._repository.add_update(
                ticket_id=ticket_id,
                comment=comment,
                images=stored_images,
                cost=amount,
                cost_type=kind,
                receipt_images=stored_receipts or None,
                created_by=actor.id,
                created_at=datetime.now(timezone.utc),
            )
        except Exception:
            await self._uploads.discard([*stored_images, *stored_receipts])
            raise

        if amount is not None:
            logger.info("Ticket %s: %s logged %s cost %s", ticket_id, actor.username, kind.value, amount)
        return update

    async def list_updates(self, ticket_id: int, viewer: User) -> Sequence[TicketUpdateEntry]:
        await self._tickets.get_ticket(ticket_id, viewer)
        return await self._repository.list_for_ticket(ticket_id)

    async def list_all(self, viewer: User) -> Sequence[TicketUpdateEntry]:
        authorize(viewer, ADMIN_ROLES)
        return await self._repository.list_all()

    async def cost_totals(
        self,
        *,
        ticket_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> CostTotals:
        start, end = _as_utc(start), _as_utc(end)
        if start is not None and end is not None and start >= end:
            raise ValidationError("start must be before end", field="start")
        return await self._repository.cost_totals(ticket_id=ticket_id, start=start, end=end)
