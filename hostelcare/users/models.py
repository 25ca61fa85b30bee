from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Roles a hostel account can hold. Fixed at registration."""

    TENANT = "tenant"
    WARDEN = "warden"
    ADMIN = "admin"


@dataclass(slots=True, frozen=True)
class User:
    """An authenticated account."""

    id: int
    username: str
    role: Role
    hostel_block: str | None = None
    created_at: datetime | None = None

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles
