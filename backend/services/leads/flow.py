"""Glue between the enquiry form, the session gate and the notification queue."""

from __future__ import annotations

import logging
from typing import Protocol

from services.notifications import NotificationStore, Severity

from .gate import GateState, LeadCaptureGate
from .schemas import EnquiryCreate

SUCCESS_TITLE = "Enquiry Submitted Successfully!"
SUCCESS_DESCRIPTION = "Our agent will contact you within 24 hours."
FAILURE_TITLE = "Error"
FAILURE_DESCRIPTION = "Failed to process enquiry"
logger = logging.getLogger(__name__)


class EnquirySubmitter(Protocol):
    async def submit(self, enquiry: EnquiryCreate) -> bool: ...


class EnquiryFlow:
    """Drive one visitor's prompt and form through to a recorded submission."""

    def __init__(
        self,
        gate: LeadCaptureGate,
        notifications: NotificationStore,
        enquiries: EnquirySubmitter,
    ) -> None:
        self.gate = gate
        self.notifications = notifications
        self.enquiries = enquiries

    def accept_prompt(self) -> None:
        # The full form replaces the prompt; the gate stays open until submit.
        self.gate.dismiss_prompt()

    def decline_prompt(self) -> None:
        self.gate.dismiss_prompt()

    async def submit(self, enquiry: EnquiryCreate) -> bool:
        session_id = self.gate.get_or_create_session_id()
        if enquiry.session_id is None:
            enquiry = enquiry.model_copy(update={"session_id": session_id})

        accepted = await self.enquiries.submit(enquiry)
        if not accepted:
            logger.info("Enquiry was not accepted", extra={"session_id": session_id})
            self.notifications.notify(
                title=FAILURE_TITLE,
                description=FAILURE_DESCRIPTION,
                severity=Severity.DESTRUCTIVE,
            )
            return False

        await self.gate.record_submission(session_id)
        self.notifications.notify(
            title=SUCCESS_TITLE,
            description=SUCCESS_DESCRIPTION,
            severity=Severity.SUCCESS,
        )
        return True

    @property
    def submitted(self) -> bool:
        return self.gate.state is GateState.SUBMITTED
