"""Read-only access to pups, users and friendships.

Pups, users and friendships are maintained by the owner-facing management
flows. The scheduling core only asks three questions of them: who owns a
pup, whether a friend is linked to a pup, and which friends to notify.
"""
from uuid import UUID

from sqlmodel import Session, select

from dogcal.core.errors import NotFoundError, PermissionDeniedError
from dogcal.models import Friendship, Pup, User


def get_pup(session: Session, pup_id: UUID) -> Pup:
    pup = session.get(Pup, pup_id)
    if not pup:
        raise NotFoundError("Pup not found")
    return pup


def get_user(session: Session, user_id: UUID) -> User | None:
    return session.get(User, user_id)


def get_friendship(session: Session, pup_id: UUID, friend_user_id: UUID) -> Friendship | None:
    statement = (
        select(Friendship)
        .where(Friendship.pup_id == pup_id)
        .where(Friendship.friend_user_id == friend_user_id)
    )
    return session.exec(statement).first()


def list_friends(session: Session, pup_id: UUID) -> list[User]:
    """All friends linked to a pup, ordered by name."""
    statement = (
        select(User)
        .join(Friendship, Friendship.friend_user_id == User.id)
        .where(Friendship.pup_id == pup_id)
        .order_by(User.name)
    )
    return list(session.exec(statement).all())


def linked_pup_ids(session: Session, user: User) -> list[UUID]:
    """Pups a user can see: owned pups for owners, befriended pups for friends."""
    if user.is_owner:
        statement = select(Pup.id).where(Pup.owner_user_id == user.id)
    else:
        statement = select(Friendship.pup_id).where(Friendship.friend_user_id == user.id)
    return list(session.exec(statement).all())


def require_pup_owner(session: Session, caller: User, pup_id: UUID) -> Pup:
    """Return the pup if ``caller`` is an owner and owns it."""
    if not caller.is_owner:
        raise PermissionDeniedError("Only owners can manage hangouts")
    pup = get_pup(session, pup_id)
    if pup.owner_user_id != caller.id:
        raise PermissionDeniedError("You do not own this pup")
    return pup
