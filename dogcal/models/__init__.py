from dogcal.models.hangout import (
    ACTIVE_STATUSES,
    Hangout,
    HangoutNote,
    HangoutResponse,
    HangoutStatus,
    ResponseStatus,
)
from dogcal.models.pup import Friendship, Pup
from dogcal.models.suggestion import HangoutSuggestion, SuggestionStatus
from dogcal.models.user import User, UserRole

__all__ = [
    "ACTIVE_STATUSES",
    "Friendship",
    "Hangout",
    "HangoutNote",
    "HangoutResponse",
    "HangoutStatus",
    "HangoutSuggestion",
    "Pup",
    "ResponseStatus",
    "SuggestionStatus",
    "User",
    "UserRole",
]
