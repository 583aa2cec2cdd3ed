"""Drive the lead-capture gate for one visitor against a running API.

Usage:
    uv run python scripts/visit_site.py

Environment overrides:
    HOMELEAD_API_URL=http://localhost:8000
    VISITOR_SESSION_FILE=.visitor-session.json
    VISIT_DURATION_SECONDS=65
    VISIT_SUBMIT_AFTER_SECONDS=0   (0 never submits)
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import httpx

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, settings  # noqa: E402
from services.leads import (  # noqa: E402
    EnquiryClient,
    EnquiryCreate,
    EnquiryFlow,
    HttpSessionRecordStore,
    JsonFileSessionStorage,
    LeadCaptureGate,
)
from services.notifications import NotificationItem, create_store  # noqa: E402

API_URL_ENV = "HOMELEAD_API_URL"
SESSION_FILE_ENV = "VISITOR_SESSION_FILE"
DURATION_ENV = "VISIT_DURATION_SECONDS"
SUBMIT_AFTER_ENV = "VISIT_SUBMIT_AFTER_SECONDS"
DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_SESSION_FILE = ".visitor-session.json"
DEFAULT_DURATION_SECONDS = 65.0
REQUEST_TIMEOUT_SECONDS = 5.0


def _parse_positive_float(raw_value: str | None, *, default: float, label: str) -> float:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be a number") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


def _parse_non_negative_float(raw_value: str | None, *, default: float, label: str) -> float:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be a number") from exc
    if parsed < 0:
        raise ValueError(f"{label} must be non-negative")
    return parsed


def _print_notifications(snapshot: tuple[NotificationItem, ...]) -> None:
    for item in snapshot:
        if item.open:
            print(f"[{item.severity.value}] {item.title}: {item.description or ''}")


def _demo_enquiry() -> EnquiryCreate:
    return EnquiryCreate(
        name="Demo Visitor",
        email="visitor@example.com",
        phone="+1 555 010 0199",
        message="Sent from scripts/visit_site.py",
    )


async def run() -> None:
    configure_logging(settings.log_level)
    api_url = os.getenv(API_URL_ENV, DEFAULT_API_URL)
    session_file = Path(os.getenv(SESSION_FILE_ENV, DEFAULT_SESSION_FILE))
    duration = _parse_positive_float(
        os.getenv(DURATION_ENV),
        default=DEFAULT_DURATION_SECONDS,
        label=DURATION_ENV,
    )
    submit_after = _parse_non_negative_float(
        os.getenv(SUBMIT_AFTER_ENV),
        default=0,
        label=SUBMIT_AFTER_ENV,
    )

    async with httpx.AsyncClient(base_url=api_url, timeout=REQUEST_TIMEOUT_SECONDS) as client:
        gate = LeadCaptureGate(
            HttpSessionRecordStore(client),
            JsonFileSessionStorage(session_file),
            prompt_interval_seconds=settings.enquiry_prompt_interval_seconds,
            read_failure_policy=settings.session_read_failure_policy,
            on_prompt_change=lambda visible: print(
                "Prompt shown" if visible else "Prompt hidden"
            ),
        )
        notifications = create_store(
            limit=settings.notification_limit,
            remove_delay_ms=settings.notification_remove_delay_ms,
        )
        notifications.subscribe(_print_notifications)
        flow = EnquiryFlow(gate, notifications, EnquiryClient(client))

        state = await gate.start()
        print(f"Session {gate.session_id} started in state {state.value}")

        if 0 < submit_after < duration:
            await asyncio.sleep(submit_after)
            await flow.submit(_demo_enquiry())
            await asyncio.sleep(duration - submit_after)
        else:
            await asyncio.sleep(duration)

        gate.close()
        notifications.close()
        print(f"Visit finished: state={gate.state.value}, submitted={flow.submitted}")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
