"""Decide who hears about a scheduling change and what they are told.

Composer functions are pure: they take the entities involved in an
operation and return ``NotificationIntent`` records with the message
already rendered. Nothing here talks to the network; delivery is the
dispatcher's job.
"""
from dataclasses import dataclass
from uuid import UUID

from dogcal.core.config import settings
from dogcal.models import Hangout, HangoutSuggestion, Pup, User
from dogcal.notifications.templates import render

# Relationship labels shown next to each recipient in the result list
FRIEND = "friend"
ASSIGNED_FRIEND = "assigned friend"
PREVIOUS_FRIEND = "previously assigned friend"
OWNER = "owner"


@dataclass(frozen=True)
class NotificationIntent:
    """One message addressed to one recipient."""
    user_id: UUID
    user_name: str
    phone_number: str | None
    relationship: str
    kind: str
    message: str


def hangout_link(hangout: Hangout) -> str:
    return f"{settings.app_url}/calendar?hangout={hangout.id}"


def calendar_link() -> str:
    return f"{settings.app_url}/calendar"


def suggestion_link(suggestion: HangoutSuggestion) -> str:
    return f"{settings.app_url}/approvals?suggestion={suggestion.id}"


def _intent(kind: str, recipient: User, relationship: str, **context) -> NotificationIntent:
    message = render(kind, recipient_name=recipient.name, **context)
    return NotificationIntent(
        user_id=recipient.id,
        user_name=recipient.name,
        phone_number=recipient.phone_number,
        relationship=relationship,
        kind=kind,
        message=message,
    )


def _window_context(
    item: Hangout | HangoutSuggestion, pup: Pup, owner: User, link: str
) -> dict:
    return {
        "owner_name": owner.name,
        "pup_name": pup.name,
        "start_at": item.start_at,
        "end_at": item.end_at,
        "event_name": item.event_name,
        "link": link,
    }


def hangout_created(
    hangout: Hangout,
    pup: Pup,
    owner: User,
    friends: list[User],
    occurrences: int = 1,
    frequency: str | None = None,
) -> list[NotificationIntent]:
    """Tell every friend of the pup that a new open hangout is available."""
    context = _window_context(hangout, pup, owner, hangout_link(hangout))
    return [
        _intent(
            "hangout_created",
            friend,
            FRIEND,
            owner_notes=hangout.owner_notes,
            occurrences=occurrences,
            frequency=frequency,
            **context,
        )
        for friend in friends
    ]


def hangout_confirmed(
    hangout: Hangout,
    pup: Pup,
    owner: User,
    friend: User,
    occurrences: int = 1,
    frequency: str | None = None,
) -> list[NotificationIntent]:
    """Tell the friend they have been booked for a hangout."""
    return [
        _intent(
            "hangout_confirmed",
            friend,
            ASSIGNED_FRIEND,
            owner_notes=hangout.owner_notes,
            occurrences=occurrences,
            frequency=frequency,
            **_window_context(hangout, pup, owner, hangout_link(hangout)),
        )
    ]


def hangout_reconfirm(hangout: Hangout, pup: Pup, owner: User, friend: User) -> list[NotificationIntent]:
    """Ask the assigned friend to confirm the hangout's new time."""
    return [
        _intent(
            "hangout_reconfirm",
            friend,
            ASSIGNED_FRIEND,
            **_window_context(hangout, pup, owner, hangout_link(hangout)),
        )
    ]


def hangout_reassigned(
    hangout: Hangout, pup: Pup, owner: User, previous_friend: User
) -> list[NotificationIntent]:
    return [
        _intent(
            "hangout_reassigned",
            previous_friend,
            PREVIOUS_FRIEND,
            **_window_context(hangout, pup, owner, calendar_link()),
        )
    ]


def hangout_assigned(hangout: Hangout, pup: Pup, owner: User, friend: User) -> list[NotificationIntent]:
    """Tell the owner a friend claimed their open hangout."""
    return [
        _intent(
            "hangout_assigned",
            owner,
            OWNER,
            friend_name=friend.name,
            **_window_context(hangout, pup, owner, hangout_link(hangout)),
        )
    ]


def hangout_unassigned(hangout: Hangout, pup: Pup, owner: User, friend: User) -> list[NotificationIntent]:
    """Tell the owner the assigned friend stepped back."""
    return [
        _intent(
            "hangout_unassigned",
            owner,
            OWNER,
            friend_name=friend.name,
            **_window_context(hangout, pup, owner, hangout_link(hangout)),
        )
    ]


def hangout_cancelled(hangout: Hangout, pup: Pup, owner: User, friend: User) -> list[NotificationIntent]:
    return [
        _intent(
            "hangout_cancelled",
            friend,
            ASSIGNED_FRIEND,
            **_window_context(hangout, pup, owner, calendar_link()),
        )
    ]


def hangout_deleted(
    hangout: Hangout, pup: Pup, owner: User, friends: list[User]
) -> list[NotificationIntent]:
    context = _window_context(hangout, pup, owner, calendar_link())
    return [_intent("hangout_deleted", friend, FRIEND, **context) for friend in friends]


def suggestion_created(
    suggestion: HangoutSuggestion,
    pup: Pup,
    owner: User,
    friend: User,
    occurrences: int = 1,
    frequency: str | None = None,
) -> list[NotificationIntent]:
    """Tell the owner a friend proposed a time."""
    return [
        _intent(
            "suggestion_created",
            owner,
            OWNER,
            friend_name=friend.name,
            friend_comment=suggestion.friend_comment,
            occurrences=occurrences,
            frequency=frequency,
            **_window_context(suggestion, pup, owner, suggestion_link(suggestion)),
        )
    ]


def suggestion_decided(
    suggestion: HangoutSuggestion,
    pup: Pup,
    owner: User,
    friend: User,
    hangout: Hangout | None = None,
) -> list[NotificationIntent]:
    """Tell the suggesting friend whether the owner approved or rejected."""
    if hangout is not None:
        kind, link = "suggestion_approved", hangout_link(hangout)
    else:
        kind, link = "suggestion_rejected", calendar_link()
    return [
        _intent(
            kind,
            friend,
            FRIEND,
            owner_comment=suggestion.owner_comment,
            **_window_context(suggestion, pup, owner, link),
        )
    ]


def suggestion_withdrawn(
    suggestion: HangoutSuggestion, pup: Pup, owner: User, friend: User
) -> list[NotificationIntent]:
    return [
        _intent(
            "suggestion_deleted",
            owner,
            OWNER,
            friend_name=friend.name,
            **_window_context(suggestion, pup, owner, f"{settings.app_url}/approvals"),
        )
    ]
