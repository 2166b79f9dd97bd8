from hyperchat.models import Message, SessionSummary, SessionView
from hyperchat.sync.synchronizer import SessionSynchronizer
from hyperchat.titles import DEFAULT_TITLE, derive_title

__all__ = [
    "DEFAULT_TITLE",
    "Message",
    "SessionSummary",
    "SessionSynchronizer",
    "SessionView",
    "derive_title",
]
