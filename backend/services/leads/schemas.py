"""Lead-capture API payload schemas."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

MAX_SESSION_ID_LENGTH = 128
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PHONE_DIGITS = 10
GENERAL_ENQUIRY_LABEL = "General Enquiry"

SessionId = Annotated[
    str,
    Field(min_length=1, max_length=MAX_SESSION_ID_LENGTH, pattern=SESSION_ID_PATTERN.pattern),
]


def normalize_session_id(raw_session_id: str) -> str:
    normalized = raw_session_id.strip()
    if not normalized:
        raise ValueError("session_id must not be empty")
    if not SESSION_ID_PATTERN.fullmatch(normalized):
        raise ValueError("session_id format is invalid")
    return normalized


class SessionRecordState(BaseModel):
    session_id: str
    enquiry_submitted: bool
    created_at: datetime | None = None
    expires_at: datetime | None = None


class CreateSessionRequest(BaseModel):
    session_id: SessionId


class EnquiryCreate(BaseModel):
    name: str = Field(max_length=120)
    email: str = Field(max_length=255)
    phone: str = Field(max_length=40)
    message: str | None = Field(default=None, max_length=5000)
    property_id: str | None = Field(default=None, max_length=64)
    property_label: str = Field(default=GENERAL_ENQUIRY_LABEL, max_length=255)
    contact_type: str | None = Field(default=None, max_length=32)
    session_id: SessionId | None = None

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name is required")
        return normalized

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Email is required")
        if not EMAIL_PATTERN.search(normalized):
            raise ValueError("Email is invalid")
        return normalized

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Phone number is required")
        digits = re.sub(r"\D", "", normalized)
        if len(digits) < MIN_PHONE_DIGITS:
            raise ValueError("Please enter a valid phone number")
        return normalized

    @field_validator("message")
    @classmethod
    def _blank_message_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("property_label")
    @classmethod
    def _default_property_label(cls, value: str) -> str:
        return value.strip() or GENERAL_ENQUIRY_LABEL


class EnquiryResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    message: str | None
    property_id: str | None
    property_label: str
    contact_type: str | None
    created_at: datetime | None


class EnquiryMonthCount(BaseModel):
    month: str
    count: int


class EnquirySummary(BaseModel):
    total: int
    recent: list[EnquiryResponse]
    by_month: list[EnquiryMonthCount]
