"""Friend suggestions and the owner's approve/reject decision.

Lifecycle::

    PENDING -> APPROVED   (a hangout is created for the suggesting friend)
            -> REJECTED

Deleting a PENDING suggestion withdraws it. Decided suggestions are kept as
history and cannot be edited, decided again or withdrawn.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Session, col, select

from dogcal.core.config import settings
from dogcal.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from dogcal.models import Hangout, HangoutSuggestion, SuggestionStatus, User
from dogcal.notifications import composer
from dogcal.notifications.composer import NotificationIntent
from dogcal.scheduling.hangouts import add_hangout, find_conflicts
from dogcal.scheduling.locks import pup_calendar_lock
from dogcal.scheduling.relationships import get_friendship, get_pup, get_user, linked_pup_ids
from dogcal.scheduling.timewindow import (
    expand_recurrence,
    normalize,
    patched_window,
    utcnow,
    validate_window,
)
from dogcal.schemas import Decision, SuggestionCreate, SuggestionUpdate

logger = logging.getLogger(__name__)


@dataclass
class SuggestionOutcome:
    suggestions: list[HangoutSuggestion]
    hangout: Hangout | None = None
    notifications: list[NotificationIntent] = field(default_factory=list)

    @property
    def suggestion(self) -> HangoutSuggestion:
        return self.suggestions[0]


def get_suggestion(session: Session, suggestion_id: UUID) -> HangoutSuggestion:
    suggestion = session.get(HangoutSuggestion, suggestion_id)
    if not suggestion:
        raise NotFoundError("Suggestion not found")
    return suggestion


def _require_pending(suggestion: HangoutSuggestion, action: str) -> None:
    if suggestion.status != SuggestionStatus.PENDING:
        raise ConflictError(
            f"Cannot {action} a suggestion that is already {suggestion.status.value.lower()}"
        )


def propose_suggestions(
    session: Session, caller: User, data: SuggestionCreate
) -> SuggestionOutcome:
    """
    A friend proposes one window, or a recurring series of windows.

    Suggestions are not checked against the calendar: they occupy nothing
    until approved.
    """
    if not caller.is_friend:
        raise PermissionDeniedError("Only friends can suggest hangouts")
    pup = get_pup(session, data.pup_id)
    if not get_friendship(session, pup.id, caller.id):
        raise PermissionDeniedError("You do not have permission to suggest hangouts for this pup")

    start, end = normalize(data.start_at), normalize(data.end_at)
    validate_window(start, end)
    if data.recurrence:
        windows = expand_recurrence(start, end, data.recurrence.frequency, data.recurrence.count)
        series_id = uuid4()
    else:
        windows = [(start, end)]
        series_id = None

    suggestions = [
        HangoutSuggestion(
            pup_id=pup.id,
            start_at=occurrence_start,
            end_at=occurrence_end,
            suggested_by_friend_user_id=caller.id,
            event_name=data.event_name,
            friend_comment=data.friend_comment,
            series_id=series_id,
            series_index=index if series_id else None,
        )
        for index, (occurrence_start, occurrence_end) in enumerate(windows)
    ]
    session.add_all(suggestions)
    session.commit()
    for suggestion in suggestions:
        session.refresh(suggestion)
    logger.info(f"{caller.name} suggested {len(suggestions)} hangout(s) for {pup.name}")

    frequency = data.recurrence.frequency.value if data.recurrence else None
    intents = composer.suggestion_created(
        suggestions[0], pup, pup.owner, caller, len(suggestions), frequency
    )
    return SuggestionOutcome(suggestions=suggestions, notifications=intents)


def _record_decision(
    suggestion: HangoutSuggestion,
    status: SuggestionStatus,
    caller: User,
    comment: str | None,
) -> None:
    suggestion.status = status
    suggestion.owner_comment = comment
    suggestion.owner_decision_by_user_id = caller.id
    suggestion.owner_decision_at = utcnow()


def decide_suggestion(
    session: Session,
    caller: User,
    suggestion_id: UUID,
    decision: Decision,
    comment: str | None = None,
) -> SuggestionOutcome:
    """
    Approve or reject a pending suggestion (pup owner only).

    Approval creates an ASSIGNED hangout for the suggesting friend and marks
    the suggestion APPROVED in a single commit: either both are stored or
    neither is.
    """
    suggestion = get_suggestion(session, suggestion_id)
    pup = suggestion.pup
    if not caller.is_owner or pup.owner_user_id != caller.id:
        raise PermissionDeniedError("Only the pup owner can approve or reject suggestions")

    hangout = None
    with pup_calendar_lock(session, pup.id):
        try:
            # A concurrent decision may have landed since the first read
            session.refresh(suggestion)
            _require_pending(suggestion, "decide")

            if decision == Decision.APPROVE:
                if settings.approval_overlap_guard and find_conflicts(
                    session, pup.id, suggestion.start_at, suggestion.end_at
                ):
                    raise ConflictError("Suggested time overlaps an existing hangout")
                hangout = add_hangout(
                    session,
                    pup_id=pup.id,
                    start_at=suggestion.start_at,
                    end_at=suggestion.end_at,
                    created_by=caller.id,
                    assigned_friend_user_id=suggestion.suggested_by_friend_user_id,
                    owner_notes=comment,
                    event_name=suggestion.event_name,
                )
                _record_decision(suggestion, SuggestionStatus.APPROVED, caller, comment)
            else:
                _record_decision(suggestion, SuggestionStatus.REJECTED, caller, comment)
            session.add(suggestion)
            session.commit()
        except Exception:
            session.rollback()
            raise

    session.refresh(suggestion)
    if hangout is not None:
        session.refresh(hangout)
    logger.info(f"Suggestion {suggestion.id} {suggestion.status.value.lower()} by {caller.name}")

    friend = get_user(session, suggestion.suggested_by_friend_user_id)
    intents = composer.suggestion_decided(suggestion, pup, caller, friend, hangout)
    return SuggestionOutcome(suggestions=[suggestion], hangout=hangout, notifications=intents)


def edit_suggestion(
    session: Session, caller: User, suggestion_id: UUID, patch: SuggestionUpdate
) -> SuggestionOutcome:
    """The suggesting friend changes a pending suggestion."""
    suggestion = get_suggestion(session, suggestion_id)
    if suggestion.suggested_by_friend_user_id != caller.id:
        raise PermissionDeniedError("You can only edit your own suggestions")
    _require_pending(suggestion, "edit")

    changes = patch.model_dump(exclude_unset=True)
    start, end = patched_window(changes, suggestion.start_at, suggestion.end_at)

    with pup_calendar_lock(session, suggestion.pup_id):
        try:
            # The owner may have decided since the first read
            session.refresh(suggestion)
            _require_pending(suggestion, "edit")
            suggestion.start_at = start
            suggestion.end_at = end
            if "event_name" in changes:
                suggestion.event_name = changes["event_name"]
            if "friend_comment" in changes:
                suggestion.friend_comment = changes["friend_comment"]
            session.add(suggestion)
            session.commit()
        except Exception:
            session.rollback()
            raise
    session.refresh(suggestion)
    return SuggestionOutcome(suggestions=[suggestion])


def withdraw_suggestion(session: Session, caller: User, suggestion_id: UUID) -> SuggestionOutcome:
    """
    Delete a pending suggestion.

    The suggesting friend or the pup owner may withdraw. Only a withdrawal
    by the friend notifies the owner.
    """
    suggestion = get_suggestion(session, suggestion_id)
    pup = suggestion.pup
    is_creator = suggestion.suggested_by_friend_user_id == caller.id
    is_owner = caller.is_owner and pup.owner_user_id == caller.id
    if not (is_creator or is_owner):
        raise PermissionDeniedError("You do not have permission to delete this suggestion")
    _require_pending(suggestion, "withdraw")

    intents: list[NotificationIntent] = []
    if is_creator:
        intents = composer.suggestion_withdrawn(suggestion, pup, pup.owner, caller)

    with pup_calendar_lock(session, pup.id):
        try:
            session.refresh(suggestion)
            _require_pending(suggestion, "withdraw")
            session.delete(suggestion)
            session.commit()
        except Exception:
            session.rollback()
            raise
    logger.info(f"Suggestion {suggestion_id} withdrawn by {caller.name}")
    return SuggestionOutcome(suggestions=[], notifications=intents)


def get_suggestion_for_viewer(
    session: Session, viewer: User, suggestion_id: UUID
) -> HangoutSuggestion:
    suggestion = get_suggestion(session, suggestion_id)
    if suggestion.suggested_by_friend_user_id == viewer.id:
        return suggestion
    if viewer.is_owner and suggestion.pup.owner_user_id == viewer.id:
        return suggestion
    raise PermissionDeniedError("You do not have access to this suggestion")


def list_suggestions(
    session: Session,
    viewer: User,
    status: SuggestionStatus | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[HangoutSuggestion]:
    """
    Owners see suggestions for their pups; friends see their own.

    ``start``/``end`` keep only suggestions whose window overlaps that range.
    """
    statement = select(HangoutSuggestion)
    if viewer.is_owner:
        statement = statement.where(
            col(HangoutSuggestion.pup_id).in_(linked_pup_ids(session, viewer))
        )
    else:
        statement = statement.where(HangoutSuggestion.suggested_by_friend_user_id == viewer.id)
    if status is not None:
        statement = statement.where(HangoutSuggestion.status == status)
    if start:
        statement = statement.where(HangoutSuggestion.end_at > normalize(start))
    if end:
        statement = statement.where(HangoutSuggestion.start_at < normalize(end))
    statement = statement.order_by(HangoutSuggestion.start_at)
    return list(session.exec(statement).all())
