from blackctrl.models.outreach import (
    REQUIRED_FIELDS,
    InternalNotes,
    OutreachFormData,
    OutreachResult,
    SavedMessage,
    Swot,
)
from blackctrl.models.session import AuthState, NavigationEvent, Session

__all__ = [
    "REQUIRED_FIELDS",
    "AuthState",
    "InternalNotes",
    "NavigationEvent",
    "OutreachFormData",
    "OutreachResult",
    "SavedMessage",
    "Session",
    "Swot",
]
