"""Suggestion model: a friend-proposed time awaiting the owner's decision.

Suggestions do not occupy the pup's calendar. Only approving one turns it
into a committed Hangout.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

from dogcal.scheduling.timewindow import utcnow

if TYPE_CHECKING:
    from dogcal.models.pup import Pup


class SuggestionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class HangoutSuggestion(SQLModel, table=True):
    """A proposed hangout window.

    Attributes:
        id: Unique identifier (UUID).
        pup_id: The pup the friend offers to look after.
        start_at: Proposed start (naive UTC).
        end_at: Proposed end (naive UTC).
        status: PENDING until the owner approves or rejects it.
        suggested_by_friend_user_id: The friend who proposed it.
        event_name: Optional display name, copied to the hangout on approval.
        friend_comment: Message from the friend to the owner.
        owner_comment: The owner's comment on the decision. Becomes the
            hangout's owner notes on approval.
        owner_decision_by_user_id: Owner who decided.
        owner_decision_at: When the decision was made.
        series_id: Shared by every suggestion from one recurrence request.
        series_index: Zero-based position within the series.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    pup_id: UUID = Field(foreign_key="pup.id", index=True)
    start_at: NaiveDatetime = Field(sa_type=DateTime, index=True)
    end_at: NaiveDatetime = Field(sa_type=DateTime)
    status: SuggestionStatus = Field(default=SuggestionStatus.PENDING, index=True)
    suggested_by_friend_user_id: UUID = Field(foreign_key="user.id", index=True)
    event_name: str | None = None
    friend_comment: str | None = None
    owner_comment: str | None = None
    owner_decision_by_user_id: UUID | None = Field(default=None, foreign_key="user.id")
    owner_decision_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
    series_id: UUID | None = Field(default=None, index=True)
    series_index: int | None = None
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)

    # Relationship
    pup: Optional["Pup"] = Relationship()
