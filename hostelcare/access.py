"""Role checks and row-level visibility for tickets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from hostelcare.errors import UnauthorizedError
from hostelcare.users.models import Role, User

STAFF_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.WARDEN})
ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN})


def authorize(user: User, roles: Iterable[Role]) -> User:
    """Return ``user`` if its role is in ``roles``, otherwise raise ``UnauthorizedError``."""

    allowed = frozenset(roles)
    if user.role not in allowed:
        names = ", ".join(sorted(role.value for role in allowed))
        raise UnauthorizedError(f"Role {user.role.value!r} is not permitted; requires one of: {names}")
    return user


@dataclass(slots=True, frozen=True)
class TicketScope:
    """Row filter restricting which tickets a user may observe.

    ``None`` on both fields means every ticket is visible.
    """

    created_by: int | None = None
    assigned_to: int | None = None

    @classmethod
    def for_user(cls, user: User) -> "TicketScope":
        if user.role is Role.TENANT:
            return cls(created_by=user.id)
        if user.role is Role.WARDEN:
            return cls(assigned_to=user.id)
        return cls()

    def includes(self, *, created_by: int, assigned_to: int | None) -> bool:
        if self.created_by is not None and created_by != self.created_by:
            return False
        if self.assigned_to is not None and assigned_to != self.assigned_to:
            return False
        return True
