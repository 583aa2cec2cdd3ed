"""Lead-capture session record model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func, text
from sqlmodel import Field, SQLModel


class UserSession(SQLModel, table=True):
    """One row per browser session tracking whether an enquiry was submitted."""

    __tablename__ = "user_sessions"

    id: int | None = Field(
        default=None, sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    session_id: str = Field(
        sa_column=Column(String(128), unique=True, nullable=False, index=True)
    )
    enquiry_submitted: bool = Field(
        default=False,
        sa_column=Column(
            Boolean,
            nullable=False,
            server_default=text("false"),
        ),
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
