"""SQLModel models package."""

from .enquiry import Enquiry
from .user_session import UserSession

__all__ = [
    "Enquiry",
    "UserSession",
]
