"""Shared FastAPI dependencies."""

from __future__ import annotations

import hmac
from collections.abc import AsyncIterator

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from core import settings
from db.session import get_session

ADMIN_KEY_HEADER = "X-Admin-Key"


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


async def require_admin(
    admin_key: str | None = Header(default=None, alias=ADMIN_KEY_HEADER),
) -> None:
    """Reject requests that do not carry the configured admin key."""
    expected = settings.admin_api_key.strip()
    # An unset key disables the admin endpoints entirely.
    if not expected or admin_key is None or not hmac.compare_digest(
        admin_key.strip().encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
