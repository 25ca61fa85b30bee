"""SQLModel table definitions for the maintenance data layer."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


class UserTable(SQLModel, table=True):
    """Accounts for tenants, wardens and admins."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(sa_column=Column(String(150), nullable=False, unique=True))
    role: str = Field(sa_column=Column(String(20), nullable=False, index=True))
    hostel_block: str | None = Field(default=None, sa_column=Column(String(100), nullable=True))
    api_token: str | None = Field(default=None, sa_column=Column(String(255), nullable=True, unique=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class VendorTable(SQLModel, table=True):
    """External service providers that can be engaged on a ticket."""

    __tablename__ = "vendors"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    specialization: str = Field(sa_column=Column(String(255), nullable=False))
    contact_number: str = Field(sa_column=Column(String(50), nullable=False))
    email: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTable(SQLModel, table=True):
    """Maintenance tickets reported by tenants."""

    __tablename__ = "tickets"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(String(255), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    location: str = Field(sa_column=Column(String(255), nullable=False))
    status: str = Field(sa_column=Column(String(50), nullable=False, index=True))
    priority: str = Field(sa_column=Column(String(20), nullable=False))
    images: list[str] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_by: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False, index=True))
    assigned_to: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    )
    vendor_id: int | None = Field(default=None, sa_column=Column(Integer, ForeignKey("vendors.id"), nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketUpdateTable(SQLModel, table=True):
    """Append-only comments and cost entries attached to a ticket."""

    __tablename__ = "ticket_updates"

    id: int | None = Field(default=None, primary_key=True)
    ticket_id: int = Field(sa_column=Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True))
    comment: str = Field(sa_column=Column(Text, nullable=False))
    images: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    cost: Decimal | None = Field(default=None, sa_column=Column(Numeric(10, 2), nullable=True))
    cost_type: str | None = Field(default=None, sa_column=Column(String(20), nullable=True))
    receipt_images: list[str] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_by: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
