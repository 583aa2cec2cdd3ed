"""Session-gated lead-capture prompt.

The gate decides, on a recurring timer, whether to show the enquiry prompt
to the current visitor. Once the visitor submits an enquiry the gate enters
the terminal ``SUBMITTED`` state: the local flag is written first, the prompt
timer is cancelled and no later-resolving remote call may reopen it.

Remote failures never stop the prompt cycle; the gate falls back to the
local flag and logs the failure.
"""

from __future__ import annotations

import logging
import random
import string
import time
from enum import Enum
from typing import Callable

from services.timers import LoopScheduler, RecurringTimer, Scheduler

from .records import SessionRecordStore, SessionStoreUnavailableError
from .schemas import SESSION_ID_PATTERN
from .storage import SESSION_ID_KEY, SessionStorage, read_enquiry_flag, write_enquiry_flag

DEFAULT_PROMPT_INTERVAL_SECONDS = 30.0
SESSION_ID_RANDOM_LENGTH = 9
_BASE36_ALPHABET = string.digits + string.ascii_lowercase
logger = logging.getLogger(__name__)


class GateState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CHECKING = "checking"
    GATED_OPEN = "gated_open"
    GATED_CLOSED = "gated_closed"
    SUBMITTED = "submitted"


class ReadFailurePolicy(str, Enum):
    """What to do when the remote session record cannot be read."""

    # Assume the record is absent and write a fresh one.
    INSERT = "insert"
    # Leave the remote state unknown and retry the read on the next check.
    DEFER = "defer"


TERMINAL_STATES = frozenset({GateState.GATED_CLOSED, GateState.SUBMITTED})


def generate_session_id(now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_BASE36_ALPHABET, k=SESSION_ID_RANDOM_LENGTH))
    return f"session_{now_ms}_{suffix}"


class LeadCaptureGate:
    """Per-session state machine deciding when to show the enquiry prompt."""

    def __init__(
        self,
        records: SessionRecordStore,
        storage: SessionStorage,
        *,
        scheduler: Scheduler | None = None,
        prompt_interval_seconds: float = DEFAULT_PROMPT_INTERVAL_SECONDS,
        read_failure_policy: ReadFailurePolicy | str = ReadFailurePolicy.INSERT,
        on_prompt_change: Callable[[bool], None] | None = None,
    ) -> None:
        if prompt_interval_seconds <= 0:
            raise ValueError("prompt_interval_seconds must be positive")
        self.records = records
        self.storage = storage
        self.scheduler: Scheduler = scheduler or LoopScheduler()
        self.prompt_interval_seconds = prompt_interval_seconds
        self.read_failure_policy = ReadFailurePolicy(read_failure_policy)
        self.on_prompt_change = on_prompt_change
        self._state = GateState.UNINITIALIZED
        self._session_id: str | None = None
        self._prompt_visible = False
        self._cancel_prompt: Callable[[], None] | None = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def prompt_visible(self) -> bool:
        return self._prompt_visible

    def get_or_create_session_id(self) -> str:
        """Return the session id stored locally, creating one on first use."""
        if self._session_id is not None:
            return self._session_id

        stored = self.storage.get(SESSION_ID_KEY)
        if stored is not None and SESSION_ID_PATTERN.fullmatch(stored.strip()):
            session_id = stored.strip()
        else:
            if stored is not None:
                logger.warning("Regenerating malformed stored session id")
            session_id = generate_session_id()
            self.storage.set(SESSION_ID_KEY, session_id)

        self._session_id = session_id
        return session_id

    async def start(self) -> GateState:
        """Resolve the session and arm the prompt timer when prompting is allowed."""
        if self._state is not GateState.UNINITIALIZED:
            return self._state

        session_id = self.get_or_create_session_id()
        self._state = GateState.CHECKING

        submitted = await self.check_submission_status(session_id)
        if self._state is not GateState.CHECKING:
            # Submitted or torn down while the remote check was in flight.
            return self._state

        if submitted:
            self._state = GateState.GATED_CLOSED
            return self._state

        self._state = GateState.GATED_OPEN
        self._cancel_prompt = self.arm_prompt_timer(self.prompt_interval_seconds, self._on_tick)
        return self._state

    async def check_submission_status(self, session_id: str) -> bool:
        """Return True when this session has already submitted an enquiry."""
        if read_enquiry_flag(self.storage) is True:
            return True

        try:
            record = await self.records.get(session_id)
        except SessionStoreUnavailableError as read_error:
            logger.warning(
                "Session record read failed; falling back to local state",
                extra={"session_id": session_id, "policy": self.read_failure_policy.value},
                exc_info=read_error,
            )
            if self.read_failure_policy is ReadFailurePolicy.INSERT:
                await self._insert_record(session_id)
            return read_enquiry_flag(self.storage) is True

        if record is None:
            await self._insert_record(session_id)
            return read_enquiry_flag(self.storage) is True

        if record.enquiry_submitted:
            write_enquiry_flag(self.storage, True)
            if self._state in (GateState.CHECKING, GateState.GATED_OPEN):
                self._close(GateState.GATED_CLOSED)
            return True
        return read_enquiry_flag(self.storage) is True

    async def record_submission(self, session_id: str) -> None:
        """Make the submission sticky locally, then persist it remotely best-effort."""
        write_enquiry_flag(self.storage, True)
        self._close(GateState.SUBMITTED)

        try:
            await self.records.upsert_submitted(session_id)
        except SessionStoreUnavailableError as write_error:
            logger.warning(
                "Failed to persist enquiry submission remotely",
                extra={"session_id": session_id},
                exc_info=write_error,
            )

    def arm_prompt_timer(
        self,
        interval_seconds: float,
        on_tick: Callable[[], None],
    ) -> Callable[[], None]:
        """Start a recurring timer; the returned canceller is idempotent."""
        timer = RecurringTimer(self.scheduler, interval_seconds, on_tick).start()
        return timer.cancel

    def dismiss_prompt(self) -> None:
        """Hide the prompt without submitting; it reappears on a later tick."""
        self._set_prompt_visible(False)

    def close(self) -> None:
        """Tear down: cancel the prompt timer and hide the prompt."""
        self._cancel_prompt_timer()
        self._set_prompt_visible(False)
        if self._state not in TERMINAL_STATES:
            self._state = GateState.GATED_CLOSED

    def _on_tick(self) -> None:
        if self._state is not GateState.GATED_OPEN or self._prompt_visible:
            return
        self._set_prompt_visible(True)

    def _close(self, state: GateState) -> None:
        if self._state is GateState.SUBMITTED:
            return
        self._state = state
        self._cancel_prompt_timer()
        self._set_prompt_visible(False)

    def _cancel_prompt_timer(self) -> None:
        cancel, self._cancel_prompt = self._cancel_prompt, None
        if cancel is not None:
            cancel()

    def _set_prompt_visible(self, visible: bool) -> None:
        if self._prompt_visible == visible:
            return
        self._prompt_visible = visible
        if self.on_prompt_change is not None:
            self.on_prompt_change(visible)

    async def _insert_record(self, session_id: str) -> None:
        if self._state in TERMINAL_STATES:
            # Closed or submitted while the read was in flight.
            return
        try:
            await self.records.insert(session_id)
        except SessionStoreUnavailableError as insert_error:
            logger.warning(
                "Failed to create session record",
                extra={"session_id": session_id},
                exc_info=insert_error,
            )
