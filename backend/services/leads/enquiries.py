"""Enquiry persistence operations."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Enquiry

from .records import ensure_aware
from .schemas import EnquiryCreate, EnquiryMonthCount, EnquiryResponse, EnquirySummary

DEFAULT_RECENT_ENQUIRIES = 10
MAX_ENQUIRY_PAGE_SIZE = 100

logger = logging.getLogger(__name__)


def to_response(enquiry: Enquiry) -> EnquiryResponse:
    return EnquiryResponse(
        id=enquiry.id,
        name=enquiry.name,
        email=enquiry.email,
        phone=enquiry.phone,
        message=enquiry.message,
        property_id=enquiry.property_id,
        property_label=enquiry.property_label,
        contact_type=enquiry.contact_type,
        created_at=enquiry.created_at,
    )


async def create_enquiry(session: AsyncSession, payload: EnquiryCreate) -> Enquiry:
    enquiry = Enquiry(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        message=payload.message,
        property_id=payload.property_id,
        property_label=payload.property_label,
        contact_type=payload.contact_type,
        session_id=payload.session_id,
    )
    session.add(enquiry)
    await session.commit()
    await session.refresh(enquiry)
    logger.info(
        "Stored enquiry",
        extra={"enquiry_id": enquiry.id, "property_id": enquiry.property_id},
    )
    return enquiry


async def list_enquiries(
    session: AsyncSession,
    *,
    limit: int = DEFAULT_RECENT_ENQUIRIES,
    offset: int = 0,
) -> list[Enquiry]:
    """Return enquiries newest first."""
    created_at_column = cast(ColumnElement[Any], Enquiry.created_at)
    id_column = cast(ColumnElement[str], Enquiry.id)
    result = await session.execute(
        select(Enquiry)
        .order_by(created_at_column.desc(), id_column.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_enquiries_by_month(session: AsyncSession) -> list[EnquiryMonthCount]:
    """Count enquiries per UTC calendar month (``YYYY-MM``), oldest month first."""
    created_at_column = cast(ColumnElement[Any], Enquiry.created_at)
    result = await session.execute(select(created_at_column))
    counts = Counter(
        ensure_aware(created_at).strftime("%Y-%m") for created_at in result.scalars()
    )
    return [
        EnquiryMonthCount(month=month, count=count)
        for month, count in sorted(counts.items())
    ]


async def summarize_enquiries(
    session: AsyncSession,
    *,
    recent_limit: int = DEFAULT_RECENT_ENQUIRIES,
) -> EnquirySummary:
    id_column = cast(ColumnElement[str], Enquiry.id)
    total = (await session.execute(select(func.count(id_column)))).scalar_one()
    recent = await list_enquiries(session, limit=recent_limit)
    return EnquirySummary(
        total=int(total),
        recent=[to_response(enquiry) for enquiry in recent],
        by_month=await count_enquiries_by_month(session),
    )
