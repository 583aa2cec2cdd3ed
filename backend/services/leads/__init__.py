"""Lead-capture domain services."""

from .client import EnquiryClient, HttpSessionRecordStore
from .enquiries import (
    count_enquiries_by_month,
    create_enquiry,
    list_enquiries,
    summarize_enquiries,
)
from .flow import EnquiryFlow
from .gate import (
    DEFAULT_PROMPT_INTERVAL_SECONDS,
    GateState,
    LeadCaptureGate,
    ReadFailurePolicy,
    generate_session_id,
)
from .records import (
    SessionRecordStore,
    SessionStoreUnavailableError,
    SqlSessionRecordStore,
    create_session_record,
    get_session_record,
    mark_enquiry_submitted,
)
from .schemas import (
    CreateSessionRequest,
    EnquiryCreate,
    EnquiryMonthCount,
    EnquiryResponse,
    EnquirySummary,
    SessionRecordState,
)
from .storage import (
    ENQUIRY_SUBMITTED_KEY,
    SESSION_ID_KEY,
    JsonFileSessionStorage,
    MemorySessionStorage,
    SessionStorage,
    read_enquiry_flag,
    write_enquiry_flag,
)

__all__ = [
    "DEFAULT_PROMPT_INTERVAL_SECONDS",
    "ENQUIRY_SUBMITTED_KEY",
    "SESSION_ID_KEY",
    "CreateSessionRequest",
    "EnquiryClient",
    "EnquiryCreate",
    "EnquiryFlow",
    "EnquiryMonthCount",
    "EnquiryResponse",
    "EnquirySummary",
    "GateState",
    "HttpSessionRecordStore",
    "JsonFileSessionStorage",
    "LeadCaptureGate",
    "MemorySessionStorage",
    "ReadFailurePolicy",
    "SessionRecordState",
    "SessionRecordStore",
    "SessionStorage",
    "SessionStoreUnavailableError",
    "SqlSessionRecordStore",
    "count_enquiries_by_month",
    "create_enquiry",
    "create_session_record",
    "generate_session_id",
    "get_session_record",
    "list_enquiries",
    "mark_enquiry_submitted",
    "read_enquiry_flag",
    "summarize_enquiries",
    "write_enquiry_flag",
]
