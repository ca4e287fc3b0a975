"""Pup and Friendship models.

A Pup has exactly one owner. A Friendship links a FRIEND user to one pup
and is the precondition for claiming, being assigned to, or suggesting
hangouts for that pup.
"""

from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from dogcal.models.user import User


class Pup(SQLModel, table=True):
    """A cared-for animal.

    Attributes:
        id: Unique identifier (UUID).
        name: Pup's name, shown in messages and calendar exports.
        owner_user_id: The owning user.
        owner: Reference to the owning User.
        friendships: Friends linked to this pup.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    owner_user_id: UUID = Field(foreign_key="user.id", index=True)

    # Relationships
    owner: Optional["User"] = Relationship()
    friendships: list["Friendship"] = Relationship(back_populates="pup")


class Friendship(SQLModel, table=True):
    """A friend's right to interact with one pup's schedule.

    Attributes:
        id: Unique identifier (UUID).
        pup_id: The pup this friend helps with.
        friend_user_id: The FRIEND user.
        history_notes: Free-text history of the friendship, if any.
    """
    __table_args__ = (UniqueConstraint("pup_id", "friend_user_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    pup_id: UUID = Field(foreign_key="pup.id", index=True)
    friend_user_id: UUID = Field(foreign_key="user.id", index=True)
    history_notes: str | None = None

    # Relationships
    pup: Optional[Pup] = Relationship(back_populates="friendships")
    friend: Optional["User"] = Relationship()
