"""User model for owners and their trusted friends.

Users are managed outside the scheduling core (profile forms, admin
tooling). The core only reads them to decide who may act on a pup's
calendar and where to send WhatsApp notifications.
"""

from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class UserRole(str, Enum):
    OWNER = "OWNER"
    FRIEND = "FRIEND"


class User(SQLModel, table=True):
    """A party acting on pup calendars.

    Attributes:
        id: Unique identifier (UUID).
        name: Display name used in notification messages.
        role: OWNER or FRIEND. Fixed at creation.
        phone_number: WhatsApp-capable number, if the user shared one.
            Notifications to users without one are reported as skipped.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    role: UserRole
    phone_number: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER

    @property
    def is_friend(self) -> bool:
        return self.role == UserRole.FRIEND
