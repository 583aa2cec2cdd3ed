"""Enquiry submission and admin read-back endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, require_admin
from services.leads import (
    EnquiryCreate,
    EnquiryResponse,
    EnquirySummary,
    create_enquiry,
    list_enquiries,
    summarize_enquiries,
)
from services.leads.enquiries import (
    DEFAULT_RECENT_ENQUIRIES,
    MAX_ENQUIRY_PAGE_SIZE,
    to_response,
)

router = APIRouter(prefix="/enquiries", tags=["enquiries"])


@router.post(
    "",
    response_model=EnquiryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_enquiry(
    payload: EnquiryCreate,
    session: AsyncSession = Depends(get_db),
) -> EnquiryResponse:
    enquiry = await create_enquiry(session, payload)
    return to_response(enquiry)


@router.get(
    "",
    response_model=list[EnquiryResponse],
    dependencies=[Depends(require_admin)],
)
async def read_enquiries(
    limit: Annotated[int, Query(ge=1, le=MAX_ENQUIRY_PAGE_SIZE)] = DEFAULT_RECENT_ENQUIRIES,
    offset: Annotated[int, Query(ge=0)] = 0,
    session: AsyncSession = Depends(get_db),
) -> list[EnquiryResponse]:
    enquiries = await list_enquiries(session, limit=limit, offset=offset)
    return [to_response(enquiry) for enquiry in enquiries]


@router.get(
    "/summary",
    response_model=EnquirySummary,
    dependencies=[Depends(require_admin)],
)
async def read_enquiry_summary(
    session: AsyncSession = Depends(get_db),
) -> EnquirySummary:
    return await summarize_enquiries(session)
