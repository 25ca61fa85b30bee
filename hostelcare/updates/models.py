from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Sequence


class CostType(str, Enum):
    REPAIR = "repair"
    VENDOR = "vendor"


@dataclass(slots=True, frozen=True)
class TicketUpdate:
    """Immutable note attached to a ticket."""

    id: int
    ticket_id: int
    comment: str
    images: Sequence[str]
    cost: Decimal | None
    cost_type: CostType | None
    receipt_images: Sequence[str] | None
    created_by: int
    created_at: datetime


@dataclass(slots=True, frozen=True)
class TicketUpdateEntry:
    """Update joined with its author's public profile."""

    update: TicketUpdate
    username: str | None


@dataclass(slots=True)
class CostTotals:
    by_type: dict[CostType, Decimal] = field(
        default_factory=lambda: {cost_type: Decimal("0.00") for cost_type in CostType}
    )

    @property
    def repair(self) -> Decimal:
        return self.by_type[CostType.REPAIR]

    @property
    def vendor(self) -> Decimal:
        return self.by_type[CostType.VENDOR]

    @property
    def total(self) -> Decimal:
        return sum(self.by_type.values(), Decimal("0.00"))
