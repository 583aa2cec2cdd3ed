"""Lead-capture session record endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from services.leads import (
    CreateSessionRequest,
    SessionRecordState,
    create_session_record,
    get_session_record,
    mark_enquiry_submitted,
)
from services.leads.records import to_state
from services.leads.schemas import MAX_SESSION_ID_LENGTH, SESSION_ID_PATTERN

router = APIRouter(prefix="/sessions", tags=["sessions"])

SessionIdPath = Annotated[
    str,
    Path(
        min_length=1,
        max_length=MAX_SESSION_ID_LENGTH,
        pattern=SESSION_ID_PATTERN.pattern,
    ),
]


@router.get("/{session_id}", response_model=SessionRecordState)
async def read_session(
    session_id: SessionIdPath,
    session: AsyncSession = Depends(get_db),
) -> SessionRecordState:
    record = await get_session_record(session, session_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
    return to_state(record)


@router.post(
    "",
    response_model=SessionRecordState,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    payload: CreateSessionRequest,
    session: AsyncSession = Depends(get_db),
) -> SessionRecordState:
    record = await create_session_record(session, payload.session_id)
    return to_state(record)


@router.put("/{session_id}/enquiry", response_model=SessionRecordState)
async def submit_session_enquiry(
    session_id: SessionIdPath,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> SessionRecordState:
    record = await mark_enquiry_submitted(session, session_id)
    response.headers["Cache-Control"] = "no-store"
    return to_state(record)
