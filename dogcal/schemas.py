"""Request and response bodies for the JSON API."""
from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dogcal.models import HangoutStatus, ResponseStatus, SuggestionStatus
from dogcal.notifications.dispatcher import NotificationResult
from dogcal.scheduling.timewindow import Frequency


class RecurrenceRequest(BaseModel):
    """Repeat a hangout or suggestion. ``count`` is checked by the service (2-52)."""
    frequency: Frequency
    count: int


class HangoutCreate(BaseModel):
    pup_id: UUID
    start_at: datetime
    end_at: datetime
    owner_notes: str | None = None
    event_name: str | None = Field(default=None, max_length=100)
    assigned_friend_user_id: UUID | None = None
    recurrence: RecurrenceRequest | None = None


class HangoutUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied.

    Sending ``assigned_friend_user_id: null`` explicitly reopens the slot;
    leaving the field out keeps the current assignment.
    """
    event_name: str | None = Field(default=None, max_length=100)
    owner_notes: str | None = None
    assigned_friend_user_id: UUID | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None


class HangoutQuery(BaseModel):
    time_range: Literal["all", "today", "week", "nextweek"] = "all"
    start: datetime | None = None
    end: datetime | None = None
    status: Literal["all", "open", "confirmed"] = "all"
    context: Literal["all", "available", "assigned"] = "all"
    hide_repeats: bool = False
    limit: int = Field(default=20, ge=1, le=50)
    offset: int = Field(default=0, ge=0)


class NoteCreate(BaseModel):
    note_text: str


class ResponseCreate(BaseModel):
    response: ResponseStatus


class SuggestionCreate(BaseModel):
    pup_id: UUID
    start_at: datetime
    end_at: datetime
    event_name: str | None = Field(default=None, max_length=100)
    friend_comment: str | None = None
    recurrence: RecurrenceRequest | None = None


class SuggestionUpdate(BaseModel):
    event_name: str | None = Field(default=None, max_length=100)
    start_at: datetime | None = None
    end_at: datetime | None = None
    friend_comment: str | None = None


class Decision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class SuggestionDecision(BaseModel):
    decision: Decision
    owner_comment: str | None = None


# Responses

class ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PupSummary(ReadModel):
    id: UUID
    name: str


class HangoutRead(ReadModel):
    id: UUID
    pup: PupSummary
    start_at: datetime
    end_at: datetime
    status: HangoutStatus
    assigned_friend_user_id: UUID | None
    created_by_owner_user_id: UUID
    owner_notes: str | None
    event_name: str | None
    series_id: UUID | None
    series_index: int | None


class NoteRead(ReadModel):
    id: UUID
    author_user_id: UUID
    note_text: str
    created_at: datetime


class ResponseRead(ReadModel):
    responder_user_id: UUID
    status: ResponseStatus
    responded_at: datetime


class HangoutDetail(HangoutRead):
    notes: list[NoteRead]
    responses: list[ResponseRead]


class Window(BaseModel):
    start_at: datetime
    end_at: datetime


class HangoutsCreated(BaseModel):
    hangouts: list[HangoutRead]
    skipped_occurrences: list[Window]
    notifications: list[NotificationResult]


class HangoutChanged(BaseModel):
    hangout: HangoutRead
    notifications: list[NotificationResult]


class HangoutDeleted(BaseModel):
    hangout_id: UUID
    notifications: list[NotificationResult]


class HangoutPage(BaseModel):
    hangouts: list[HangoutRead]
    total: int
    has_more: bool


class SuggestionRead(ReadModel):
    id: UUID
    pup: PupSummary
    start_at: datetime
    end_at: datetime
    status: SuggestionStatus
    suggested_by_friend_user_id: UUID
    event_name: str | None
    friend_comment: str | None
    owner_comment: str | None
    owner_decision_by_user_id: UUID | None
    owner_decision_at: datetime | None
    series_id: UUID | None
    series_index: int | None


class SuggestionsCreated(BaseModel):
    suggestions: list[SuggestionRead]
    notifications: list[NotificationResult]


class SuggestionChanged(BaseModel):
    suggestion: SuggestionRead
    hangout: HangoutRead | None = None
    notifications: list[NotificationResult]


class SuggestionWithdrawn(BaseModel):
    suggestion_id: UUID
    notifications: list[NotificationResult]
