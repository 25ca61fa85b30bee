"""Ticket lifecycle: statuses, the role-gated transition table and its preconditions.

The table below is the system of record for which role may move a ticket
between which statuses.

    open             --admin-->   in_progress       (assign warden)
    open             --admin-->   escalated
    escalated        --admin-->   in_progress       (assign warden)
    in_progress      --warden-->  needs_vendor      (request vendor)
    needs_vendor     --warden-->  needs_vendor      (select vendor)
    needs_vendor     --admin-->   vendor_assigned   (approve vendor)
    needs_vendor     --either-->  in_progress       (reject / revert, clears vendor)
    vendor_assigned  --admin-->   needs_vendor      (revoke vendor, clears vendor)
    in_progress      --warden-->  pending_approval  (mark resolved)
    vendor_assigned  --warden-->  pending_approval  (mark resolved)
    pending_approval --admin-->   resolved          (approve resolution)
    pending_approval --admin-->   in_progress       (reject resolution)
    <non-terminal>   --admin-->   cancelled
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping

from hostelcare.errors import (
    InvalidTransitionError,
    MissingAssigneeError,
    MissingVendorError,
    ValidationError,
)
from hostelcare.users.models import Role

if TYPE_CHECKING:
    from .models import Ticket


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    OPEN = "open"
    ESCALATED = "escalated"
    IN_PROGRESS = "in_progress"
    NEEDS_VENDOR = "needs_vendor"
    VENDOR_ASSIGNED = "vendor_assigned"
    PENDING_APPROVAL = "pending_approval"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


TERMINAL_STATUSES: frozenset[TicketStatus] = frozenset({TicketStatus.RESOLVED, TicketStatus.CANCELLED})


class VendorEffect(str, Enum):
    """What a transition does to the ticket's ``vendor_id``."""

    KEEP = "keep"
    # a vendor id must be supplied with the request
    SELECT = "select"
    # a vendor id must be supplied or already linked
    REQUIRE = "require"
    CLEAR = "clear"


@dataclass(slots=True, frozen=True)
class TransitionRule:
    source: TicketStatus
    target: TicketStatus
    roles: frozenset[Role]
    action: str
    requires_assignee: bool = False
    vendor: VendorEffect = VendorEffect.KEEP


_ADMIN = frozenset({Role.ADMIN})
_WARDEN = frozenset({Role.WARDEN})
_STAFF = frozenset({Role.ADMIN, Role.WARDEN})


def _default_rules() -> tuple[TransitionRule, ...]:
    S = TicketStatus
    rules = [
        TransitionRule(S.OPEN, S.IN_PROGRESS, _ADMIN, "assign warden", requires_assignee=True),
        TransitionRule(S.OPEN, S.ESCALATED, _ADMIN, "escalate"),
        TransitionRule(S.ESCALATED, S.IN_PROGRESS, _ADMIN, "assign warden", requires_assignee=True),
        TransitionRule(S.IN_PROGRESS, S.NEEDS_VENDOR, _WARDEN, "request vendor"),
        TransitionRule(S.NEEDS_VENDOR, S.NEEDS_VENDOR, _WARDEN, "select vendor", vendor=VendorEffect.SELECT),
        TransitionRule(S.NEEDS_VENDOR, S.VENDOR_ASSIGNED, _ADMIN, "approve vendor", vendor=VendorEffect.REQUIRE),
        TransitionRule(S.NEEDS_VENDOR, S.IN_PROGRESS, _STAFF, "withdraw vendor request", vendor=VendorEffect.CLEAR),
        TransitionRule(S.VENDOR_ASSIGNED, S.NEEDS_VENDOR, _ADMIN, "revoke vendor", vendor=VendorEffect.CLEAR),
        TransitionRule(S.IN_PROGRESS, S.PENDING_APPROVAL, _WARDEN, "mark resolved"),
        TransitionRule(S.VENDOR_ASSIGNED, S.PENDING_APPROVAL, _WARDEN, "mark resolved"),
        TransitionRule(S.PENDING_APPROVAL, S.RESOLVED, _ADMIN, "approve resolution"),
        TransitionRule(S.PENDING_APPROVAL, S.IN_PROGRESS, _ADMIN, "reject resolution"),
    ]
    rules.extend(
        TransitionRule(status, S.CANCELLED, _ADMIN, "cancel")
        for status in S
        if status not in TERMINAL_STATUSES
    )
    return tuple(rules)


class TicketStateMachine:
    """Validate ticket lifecycle transitions for a given role."""

    def __init__(self, rules: Iterable[TransitionRule] | None = None) -> None:
        table: dict[tuple[TicketStatus, TicketStatus], TransitionRule] = {}
        for rule in rules if rules is not None else _default_rules():
            key = (rule.source, rule.target)
            if key in table:
                raise ValueError(f"Duplicate transition rule: {rule.source.value} -> {rule.target.value}")
            table[key] = rule
        self._rules: Mapping[tuple[TicketStatus, TicketStatus], TransitionRule] = table

    @staticmethod
    def initial_state() -> TicketStatus:
        return TicketStatus.OPEN

    @staticmethod
    def is_terminal(status: TicketStatus) -> bool:
        return status in TERMINAL_STATUSES

    def rules(self) -> tuple[TransitionRule, ...]:
        return tuple(self._rules.values())

    def can_transition(self, current: TicketStatus, target: TicketStatus, role: Role) -> bool:
        rule = self._rules.get((current, target))
        return rule is not None and role in rule.roles

    def allowed_targets(self, current: TicketStatus, role: Role) -> list[TicketStatus]:
        return [rule.target for rule in self._rules.values() if rule.source == current and role in rule.roles]

    def reachable_by(self, target: TicketStatus, role: Role) -> bool:
        """Whether ``role`` may move a ticket to ``target`` from any status at all."""

        return any(rule.target == target and role in rule.roles for rule in self.rules())

    def rule_for(self, current: TicketStatus, target: TicketStatus, role: Role) -> TransitionRule:
        if self.is_terminal(current):
            raise InvalidTransitionError(
                f"Ticket is {current.value}; no further status changes are accepted"
            )
        rule = self._rules.get((current, target))
        if rule is None or role not in rule.roles:
            raise InvalidTransitionError(
                f"Cannot move a ticket from {current.value} to {target.value} as {role.value}"
            )
        return rule

    def apply(
        self,
        ticket: Ticket,
        role: Role,
        target: TicketStatus,
        *,
        assigned_to: int | None = None,
        vendor_id: int | None = None,
        now: datetime | None = None,
    ) -> Ticket:
        """Return a copy of ``ticket`` moved to ``target``.

        Raises before producing anything when the transition is not permitted
        or a precondition is missing, so callers never hold a half-applied ticket.
        """

        rule = self.rule_for(ticket.status, target, role)

        if rule.requires_assignee:
            if assigned_to is None:
                raise MissingAssigneeError("Assign a warden first")
            new_assignee = assigned_to
        else:
            if assigned_to is not None:
                raise ValidationError(
                    "A warden can only be assigned when taking an open or escalated ticket into progress",
                    field="assignedTo",
                )
            new_assignee = ticket.assigned_to

        new_vendor = self._resolve_vendor(rule, ticket.vendor_id, vendor_id)

        return replace(
            ticket,
            status=target,
            assigned_to=new_assignee,
            vendor_id=new_vendor,
            updated_at=now or datetime.now(timezone.utc),
        )

    @staticmethod
    def _resolve_vendor(rule: TransitionRule, current: int | None, requested: int | None) -> int | None:
        if rule.vendor is VendorEffect.SELECT:
            if requested is None:
                raise MissingVendorError("Select a vendor first")
            return requested
        if rule.vendor is VendorEffect.REQUIRE:
            chosen = requested if requested is not None else current
            if chosen is None:
                raise MissingVendorError("Select a vendor first")
            return chosen
        if requested is not None:
            raise ValidationError(
                f"A vendor cannot be set when moving to {rule.target.value}", field="vendorId"
            )
        if rule.vendor is VendorEffect.CLEAR:
            return None
        return current
