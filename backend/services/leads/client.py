"""HTTP collaborators for running the lead-capture gate outside the API process."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from .records import SessionStoreUnavailableError
from .schemas import EnquiryCreate, SessionRecordState

SESSIONS_PATH = "/api/v1/sessions"
ENQUIRIES_PATH = "/api/v1/enquiries"
logger = logging.getLogger(__name__)


def _session_path(session_id: str) -> str:
    return f"{SESSIONS_PATH}/{quote(session_id, safe='')}"


class HttpSessionRecordStore:
    """Session record store that talks to the ``/api/v1/sessions`` endpoints."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def get(self, session_id: str) -> SessionRecordState | None:
        response = await self._request("GET", _session_path(session_id))
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        return self._parse(response)

    async def insert(self, session_id: str) -> SessionRecordState:
        response = await self._request(
            "POST",
            SESSIONS_PATH,
            json={"session_id": session_id},
        )
        return self._parse(response)

    async def upsert_submitted(self, session_id: str) -> SessionRecordState:
        response = await self._request("PUT", f"{_session_path(session_id)}/enquiry")
        return self._parse(response)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            raise SessionStoreUnavailableError(f"{method} {url} failed") from exc
        if response.is_server_error or response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise SessionStoreUnavailableError(
                f"{method} {url} returned {response.status_code}"
            )
        return response

    @staticmethod
    def _parse(response: httpx.Response) -> SessionRecordState:
        try:
            response.raise_for_status()
            return SessionRecordState.model_validate(response.json())
        except (httpx.HTTPStatusError, ValueError) as exc:
            raise SessionStoreUnavailableError(
                f"Unexpected session store response: {response.status_code}"
            ) from exc


class EnquiryClient:
    """Submit enquiries to the ``/api/v1/enquiries`` endpoint."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def submit(self, enquiry: EnquiryCreate) -> bool:
        try:
            response = await self.client.post(
                ENQUIRIES_PATH,
                json=enquiry.model_dump(mode="json", exclude_none=True),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "Failed to submit enquiry",
                extra={"session_id": enquiry.session_id},
                exc_info=exc,
            )
            return False
        return True
