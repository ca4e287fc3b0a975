"""Hangout model: a committed care slot on a pup's calendar.

This module defines the Hangout model along with its comment thread
(HangoutNote) and the friends' availability answers (HangoutResponse).

While a hangout is OPEN or ASSIGNED its time window must not overlap any
other OPEN or ASSIGNED hangout of the same pup. The check lives in
``dogcal.scheduling.hangouts``; the model only stores the window.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from dogcal.scheduling.timewindow import utcnow

if TYPE_CHECKING:
    from dogcal.models.pup import Pup


class HangoutStatus(str, Enum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (HangoutStatus.OPEN, HangoutStatus.ASSIGNED)


class ResponseStatus(str, Enum):
    YES = "YES"
    NO = "NO"


class Hangout(SQLModel, table=True):
    """A time-bounded care slot.

    Attributes:
        id: Unique identifier (UUID).
        pup_id: The pup being looked after.
        start_at: Start of the slot (naive UTC).
        end_at: End of the slot (naive UTC), strictly after start_at.
        status: OPEN, ASSIGNED, COMPLETED or CANCELLED.
        assigned_friend_user_id: The friend looking after the pup. Set iff
            status is ASSIGNED.
        created_by_owner_user_id: The owner who created the slot.
        owner_notes: Instructions from the owner.
        event_name: Optional display name.
        series_id: Shared by every hangout created from one recurrence
            request. None for single hangouts.
        series_index: Zero-based position within the series.
        notes: Comment thread.
        responses: Friends' YES/NO answers while the slot is OPEN.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    pup_id: UUID = Field(foreign_key="pup.id", index=True)
    start_at: NaiveDatetime = Field(sa_type=DateTime, index=True)
    end_at: NaiveDatetime = Field(sa_type=DateTime)
    status: HangoutStatus = Field(default=HangoutStatus.OPEN, index=True)
    assigned_friend_user_id: UUID | None = Field(
        default=None, foreign_key="user.id", index=True
    )
    created_by_owner_user_id: UUID = Field(foreign_key="user.id")
    owner_notes: str | None = None
    event_name: str | None = None
    series_id: UUID | None = Field(default=None, index=True)
    series_index: int | None = None
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)

    # Relationships
    pup: Optional["Pup"] = Relationship()
    notes: list["HangoutNote"] = Relationship(
        back_populates="hangout",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "HangoutNote.created_at",
        },
    )
    responses: list["HangoutResponse"] = Relationship(
        back_populates="hangout",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class HangoutNote(SQLModel, table=True):
    """A comment left on a hangout by the owner or the assigned friend."""
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    hangout_id: UUID = Field(foreign_key="hangout.id", index=True)
    author_user_id: UUID = Field(foreign_key="user.id")
    note_text: str
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)

    # Relationship
    hangout: Optional[Hangout] = Relationship(back_populates="notes")


class HangoutResponse(SQLModel, table=True):
    """A friend's availability answer to an OPEN hangout.

    One row per (hangout, responder); answering again overwrites it.
    Rescheduling the hangout clears all of its responses.
    """
    __table_args__ = (UniqueConstraint("hangout_id", "responder_user_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    hangout_id: UUID = Field(foreign_key="hangout.id", index=True)
    responder_user_id: UUID = Field(foreign_key="user.id")
    status: ResponseStatus
    responded_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)

    # Relationship
    hangout: Optional[Hangout] = Relationship(back_populates="responses")
