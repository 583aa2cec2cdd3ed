"""Session record persistence and the store abstraction used by the gate."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, cast, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import ColumnElement

from core import settings
from db.errors import is_unique_violation
from models import UserSession

from .schemas import SessionRecordState, normalize_session_id


class SessionStoreUnavailableError(RuntimeError):
    """Raised when the remote session record store cannot be reached."""


# Drivers such as asyncpg raise raw socket and timeout errors that SQLAlchemy
# does not wrap.
STORE_UNAVAILABLE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


@runtime_checkable
class SessionRecordStore(Protocol):
    async def get(self, session_id: str) -> SessionRecordState | None: ...

    async def insert(self, session_id: str) -> SessionRecordState: ...

    async def upsert_submitted(self, session_id: str) -> SessionRecordState: ...


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _expires_at(ttl_hours: int | None) -> datetime:
    hours = settings.session_ttl_hours if ttl_hours is None else ttl_hours
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def to_state(record: UserSession) -> SessionRecordState:
    return SessionRecordState(
        session_id=record.session_id,
        enquiry_submitted=record.enquiry_submitted,
        created_at=ensure_aware(record.created_at) if record.created_at else None,
        expires_at=ensure_aware(record.expires_at) if record.expires_at else None,
    )


async def get_session_record(session: AsyncSession, session_id: str) -> UserSession | None:
    normalized_session_id = normalize_session_id(session_id)
    result = await session.execute(
        select(UserSession)
        .where(_eq(UserSession.session_id, normalized_session_id))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_session_record(
    session: AsyncSession,
    session_id: str,
    *,
    ttl_hours: int | None = None,
) -> UserSession:
    """Insert a fresh record, returning the existing one when it already exists."""
    normalized_session_id = normalize_session_id(session_id)
    existing = await get_session_record(session, normalized_session_id)
    if existing is not None:
        return existing

    record = UserSession(
        session_id=normalized_session_id,
        enquiry_submitted=False,
        expires_at=_expires_at(ttl_hours),
    )
    session.add(record)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        duplicate = await get_session_record(session, normalized_session_id)
        if duplicate is None:  # pragma: no cover
            raise
        return duplicate

    await session.refresh(record)
    return record


async def mark_enquiry_submitted(
    session: AsyncSession,
    session_id: str,
    *,
    ttl_hours: int | None = None,
) -> UserSession:
    """Upsert the record with ``enquiry_submitted=True``; never flips it back."""
    normalized_session_id = normalize_session_id(session_id)
    existing = await get_session_record(session, normalized_session_id)
    if existing is not None:
        if not existing.enquiry_submitted:
            existing.enquiry_submitted = True
            await session.commit()
            await session.refresh(existing)
        return existing

    record = UserSession(
        session_id=normalized_session_id,
        enquiry_submitted=True,
        expires_at=_expires_at(ttl_hours),
    )
    session.add(record)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        # Lost an insert race; the row exists now, so update it in place.
        return await mark_enquiry_submitted(session, normalized_session_id, ttl_hours=ttl_hours)

    await session.refresh(record)
    return record


class SqlSessionRecordStore:
    """Session record store backed directly by the ``user_sessions`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def get(self, session_id: str) -> SessionRecordState | None:
        try:
            async with self.session_maker() as session:
                record = await get_session_record(session, session_id)
                return to_state(record) if record is not None else None
        except STORE_UNAVAILABLE_ERRORS as exc:
            raise SessionStoreUnavailableError("Failed to read session record") from exc

    async def insert(self, session_id: str) -> SessionRecordState:
        try:
            async with self.session_maker() as session:
                return to_state(await create_session_record(session, session_id))
        except STORE_UNAVAILABLE_ERRORS as exc:
            raise SessionStoreUnavailableError("Failed to create session record") from exc

    async def upsert_submitted(self, session_id: str) -> SessionRecordState:
        try:
            async with self.session_maker() as session:
                return to_state(await mark_enquiry_submitted(session, session_id))
        except STORE_UNAVAILABLE_ERRORS as exc:
            raise SessionStoreUnavailableError("Failed to update session record") from exc
