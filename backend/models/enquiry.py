"""Visitor enquiry model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text, func
from sqlmodel import Field, SQLModel


class Enquiry(SQLModel, table=True):
    """A lead submitted through the public enquiry form."""

    __tablename__ = "enquiries"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    name: str = Field(sa_column=Column(String(120), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    phone: str = Field(sa_column=Column(String(40), nullable=False))
    message: str | None = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    # Free-form reference to the listing the visitor was looking at; the
    # property catalogue lives outside this service.
    property_id: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True, index=True)
    )
    property_label: str = Field(
        default="General Enquiry", sa_column=Column(String(255), nullable=False)
    )
    contact_type: str | None = Field(
        default=None, sa_column=Column(String(32), nullable=True)
    )
    session_id: str | None = Field(
        default=None, sa_column=Column(String(128), nullable=True)
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        ),
    )
