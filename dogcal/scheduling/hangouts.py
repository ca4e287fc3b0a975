"""Hangout lifecycle: create, reschedule, reassign, claim and delete slots.

State machine per hangout::

    OPEN <-> ASSIGNED -> COMPLETED
                      -> CANCELLED

A hangout starts ASSIGNED when a friend is supplied at creation, OPEN
otherwise. Deleting a hangout is the practical cancellation.

Overlap-freedom: no two OPEN/ASSIGNED hangouts of the same pup share an
instant. Every write that can move a window runs the overlap check against
the store inside ``pup_calendar_lock`` and commits before releasing it.

Every mutating operation returns a ``HangoutOutcome``: the affected
hangouts plus the notification intents the caller should dispatch once the
transaction has committed.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID, uuid4

from sqlmodel import Session, and_, col, func, or_, select

from dogcal.core.config import settings
from dogcal.core.errors import (
    ConflictError,
    ConstraintError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from dogcal.models import (
    ACTIVE_STATUSES,
    Hangout,
    HangoutNote,
    HangoutResponse,
    HangoutStatus,
    Pup,
    ResponseStatus,
    User,
)
from dogcal.notifications import composer
from dogcal.notifications.composer import NotificationIntent
from dogcal.scheduling.locks import pup_calendar_lock
from dogcal.scheduling.relationships import (
    get_friendship,
    get_user,
    linked_pup_ids,
    list_friends,
    require_pup_owner,
)
from dogcal.scheduling.timewindow import (
    expand_recurrence,
    normalize,
    overlaps,
    patched_window,
    utcnow,
    validate_window,
)
from dogcal.schemas import HangoutCreate, HangoutQuery, HangoutUpdate

logger = logging.getLogger(__name__)


@dataclass
class HangoutOutcome:
    hangouts: list[Hangout]
    notifications: list[NotificationIntent] = field(default_factory=list)
    skipped_occurrences: list[tuple[datetime, datetime]] = field(default_factory=list)
    # Fan-out that must respect the outbound rate limit
    throttle: bool = False

    @property
    def hangout(self) -> Hangout:
        return self.hangouts[0]


def find_conflicts(
    session: Session,
    pup_id: UUID,
    start: datetime,
    end: datetime,
    exclude_id: UUID | None = None,
) -> list[Hangout]:
    """Active hangouts of ``pup_id`` whose window overlaps ``[start, end)``."""
    statement = (
        select(Hangout)
        .where(Hangout.pup_id == pup_id)
        .where(col(Hangout.status).in_(ACTIVE_STATUSES))
        .where(Hangout.start_at < end)
        .where(Hangout.end_at > start)
    )
    if exclude_id is not None:
        statement = statement.where(Hangout.id != exclude_id)
    candidates = session.exec(statement).all()
    return [h for h in candidates if overlaps(start, end, h.start_at, h.end_at)]


def _conflict_message(start: datetime, end: datetime, conflicts: list[Hangout]) -> str:
    other = conflicts[0]
    return (
        f"Hangout {start:%Y-%m-%d %H:%M}-{end:%H:%M} overlaps an existing hangout "
        f"({other.start_at:%Y-%m-%d %H:%M}-{other.end_at:%H:%M})"
    )


def add_hangout(
    session: Session,
    *,
    pup_id: UUID,
    start_at: datetime,
    end_at: datetime,
    created_by: UUID,
    assigned_friend_user_id: UUID | None = None,
    owner_notes: str | None = None,
    event_name: str | None = None,
    series_id: UUID | None = None,
    series_index: int | None = None,
) -> Hangout:
    """
    Stage a new hangout in the session and flush it.

    Shared by owner creation and suggestion approval. The caller owns the
    transaction: nothing is committed here.
    """
    hangout = Hangout(
        pup_id=pup_id,
        start_at=start_at,
        end_at=end_at,
        status=HangoutStatus.ASSIGNED if assigned_friend_user_id else HangoutStatus.OPEN,
        assigned_friend_user_id=assigned_friend_user_id,
        created_by_owner_user_id=created_by,
        owner_notes=owner_notes,
        event_name=event_name,
        series_id=series_id,
        series_index=series_index,
    )
    session.add(hangout)
    session.flush()
    return hangout


def get_hangout(session: Session, hangout_id: UUID) -> Hangout:
    hangout = session.get(Hangout, hangout_id)
    if not hangout:
        raise NotFoundError("Hangout not found")
    return hangout


def _is_pup_owner(caller: User, pup: Pup) -> bool:
    return caller.is_owner and pup.owner_user_id == caller.id


def create_hangouts(session: Session, caller: User, data: HangoutCreate) -> HangoutOutcome:
    """
    Create one hangout, or a recurring series of them.

    Each occurrence of a series is checked for overlaps on its own. With
    the default lenient policy a conflicting occurrence is skipped and
    reported while the others are kept; ``settings.series_all_or_nothing``
    makes any conflict abort the whole batch. A call that would create
    nothing raises ConflictError.
    """
    pup = require_pup_owner(session, caller, data.pup_id)
    start, end = normalize(data.start_at), normalize(data.end_at)
    validate_window(start, end)

    friend = None
    if data.assigned_friend_user_id:
        if not get_friendship(session, pup.id, data.assigned_friend_user_id):
            raise ConstraintError("Cannot assign hangout to this friend - no friendship exists")
        friend = get_user(session, data.assigned_friend_user_id)

    if data.recurrence:
        windows = expand_recurrence(start, end, data.recurrence.frequency, data.recurrence.count)
        series_id = uuid4()
    else:
        windows = [(start, end)]
        series_id = None

    created: list[Hangout] = []
    skipped: list[tuple[datetime, datetime]] = []
    with pup_calendar_lock(session, pup.id):
        try:
            for index, (occurrence_start, occurrence_end) in enumerate(windows):
                conflicts = find_conflicts(session, pup.id, occurrence_start, occurrence_end)
                if conflicts:
                    message = _conflict_message(occurrence_start, occurrence_end, conflicts)
                    if series_id is None or settings.series_all_or_nothing:
                        raise ConflictError(message)
                    logger.info(f"Skipping series occurrence {index}: {message}")
                    skipped.append((occurrence_start, occurrence_end))
                    continue
                created.append(
                    add_hangout(
                        session,
                        pup_id=pup.id,
                        start_at=occurrence_start,
                        end_at=occurrence_end,
                        created_by=caller.id,
                        assigned_friend_user_id=friend.id if friend else None,
                        owner_notes=data.owner_notes,
                        event_name=data.event_name,
                        series_id=series_id,
                        series_index=index if series_id else None,
                    )
                )
            if not created:
                raise ConflictError("Every occurrence overlaps an existing hangout")
            session.commit()
        except Exception:
            session.rollback()
            raise

    for hangout in created:
        session.refresh(hangout)
    logger.info(
        f"Created {len(created)} hangout(s) for {pup.name}"
        + (f", skipped {len(skipped)} conflicting" if skipped else "")
    )

    first = created[0]
    frequency = data.recurrence.frequency.value if data.recurrence else None
    if friend:
        intents = composer.hangout_confirmed(first, pup, caller, friend, len(created), frequency)
    else:
        intents = composer.hangout_created(
            first, pup, caller, list_friends(session, pup.id), len(created), frequency
        )
    return HangoutOutcome(hangouts=created, notifications=intents, skipped_occurrences=skipped)


def update_hangout(
    session: Session, caller: User, hangout_id: UUID, patch: HangoutUpdate
) -> HangoutOutcome:
    """
    Apply a partial update.

    ``event_name``, ``owner_notes`` and ``assigned_friend_user_id`` are
    owner-only. ``start_at``/``end_at`` may also be changed by the assigned
    friend. A time-only edit keeps the assignment (reschedule is not
    reassign) but asks the assigned friend to confirm again.
    """
    hangout = get_hangout(session, hangout_id)
    pup = hangout.pup
    changes = patch.model_dump(exclude_unset=True)

    is_owner = _is_pup_owner(caller, pup)
    is_assigned = (
        hangout.assigned_friend_user_id is not None
        and hangout.assigned_friend_user_id == caller.id
    )
    if not (is_owner or is_assigned):
        raise PermissionDeniedError("You do not have permission to edit this hangout")
    owner_only = {"event_name", "owner_notes", "assigned_friend_user_id"} & changes.keys()
    if owner_only and not is_owner:
        raise PermissionDeniedError(
            f"Only the pup owner can change: {', '.join(sorted(owner_only))}"
        )

    new_start, new_end = patched_window(changes, hangout.start_at, hangout.end_at)
    time_changed = new_start != hangout.start_at or new_end != hangout.end_at

    previous_friend_id = hangout.assigned_friend_user_id
    new_friend_id = changes.get("assigned_friend_user_id", previous_friend_id)
    assignment_changed = new_friend_id != previous_friend_id

    if (time_changed or assignment_changed) and not hangout.is_active:
        raise ConflictError(
            f"Cannot reschedule or reassign a {hangout.status.value.lower()} hangout"
        )
    if assignment_changed and new_friend_id is not None:
        if not get_friendship(session, pup.id, new_friend_id):
            raise ConstraintError("Cannot assign this friend - no friendship exists")

    with pup_calendar_lock(session, pup.id):
        try:
            if time_changed:
                conflicts = find_conflicts(
                    session, pup.id, new_start, new_end, exclude_id=hangout.id
                )
                if conflicts:
                    raise ConflictError(_conflict_message(new_start, new_end, conflicts))
                # Earlier availability answers were for the old time
                hangout.responses.clear()

            if "event_name" in changes:
                hangout.event_name = changes["event_name"]
            if "owner_notes" in changes:
                hangout.owner_notes = changes["owner_notes"]
            hangout.start_at = new_start
            hangout.end_at = new_end
            hangout.assigned_friend_user_id = new_friend_id
            if hangout.is_active:
                hangout.status = HangoutStatus.ASSIGNED if new_friend_id else HangoutStatus.OPEN
            hangout.updated_at = utcnow()
            session.add(hangout)
            session.commit()
        except Exception:
            session.rollback()
            raise

    session.refresh(hangout)
    logger.info(
        f"Updated hangout {hangout.id}: fields={sorted(changes)}, status={hangout.status.value}"
    )

    owner = pup.owner
    intents: list[NotificationIntent] = []
    if assignment_changed:
        if new_friend_id is not None:
            new_friend = get_user(session, new_friend_id)
            intents += composer.hangout_confirmed(hangout, pup, owner, new_friend)
        if previous_friend_id is not None:
            previous_friend = get_user(session, previous_friend_id)
            intents += composer.hangout_reassigned(hangout, pup, owner, previous_friend)
    elif time_changed and hangout.status == HangoutStatus.ASSIGNED:
        friend = get_user(session, hangout.assigned_friend_user_id)
        intents += composer.hangout_reconfirm(hangout, pup, owner, friend)
    return HangoutOutcome(hangouts=[hangout], notifications=intents)


def delete_hangout(session: Session, caller: User, hangout_id: UUID) -> HangoutOutcome:
    """
    Delete a hangout (owner only).

    An ASSIGNED hangout's friend is told it was cancelled. For an OPEN
    hangout every friend of the pup is told it was removed; that fan-out is
    marked for throttled delivery.
    """
    hangout = get_hangout(session, hangout_id)
    pup = hangout.pup
    if not _is_pup_owner(caller, pup):
        raise PermissionDeniedError("Only the pup owner can delete hangouts")

    # Compose before deleting: the row's attributes are gone after commit
    intents: list[NotificationIntent] = []
    throttle = False
    if hangout.status == HangoutStatus.ASSIGNED:
        friend = get_user(session, hangout.assigned_friend_user_id)
        intents = composer.hangout_cancelled(hangout, pup, caller, friend)
    elif hangout.status == HangoutStatus.OPEN:
        intents = composer.hangout_deleted(hangout, pup, caller, list_friends(session, pup.id))
        throttle = True

    status = hangout.status
    with pup_calendar_lock(session, pup.id):
        try:
            session.delete(hangout)
            session.commit()
        except Exception:
            session.rollback()
            raise
    logger.info(f"Deleted {status.value} hangout {hangout_id} for {pup.name}")

    return HangoutOutcome(hangouts=[], notifications=intents, throttle=throttle)


def claim_hangout(session: Session, caller: User, hangout_id: UUID) -> HangoutOutcome:
    """A friend assigns themselves to an OPEN hangout."""
    if not caller.is_friend:
        raise PermissionDeniedError("Only friends can assign themselves to hangouts")
    hangout = get_hangout(session, hangout_id)
    pup = hangout.pup
    if not get_friendship(session, pup.id, caller.id):
        raise PermissionDeniedError("You do not have permission to care for this pup")

    with pup_calendar_lock(session, pup.id):
        try:
            # Status as of now, not as of the first read
            session.refresh(hangout)
            if hangout.status != HangoutStatus.OPEN:
                raise ConflictError("Hangout is not available (already assigned or completed)")
            hangout.assigned_friend_user_id = caller.id
            hangout.status = HangoutStatus.ASSIGNED
            hangout.updated_at = utcnow()
            session.add(hangout)
            session.commit()
        except Exception:
            session.rollback()
            raise

    session.refresh(hangout)
    logger.info(f"{caller.name} claimed hangout {hangout.id}")
    return HangoutOutcome(
        hangouts=[hangout],
        notifications=composer.hangout_assigned(hangout, pup, pup.owner, caller),
    )


def unassign_hangout(session: Session, caller: User, hangout_id: UUID) -> HangoutOutcome:
    """The assigned friend steps back; the slot reopens."""
    hangout = get_hangout(session, hangout_id)
    if hangout.assigned_friend_user_id != caller.id:
        raise PermissionDeniedError("You are not assigned to this hangout")
    if hangout.status != HangoutStatus.ASSIGNED:
        raise ConflictError(f"Cannot unassign a {hangout.status.value.lower()} hangout")

    hangout.assigned_friend_user_id = None
    hangout.status = HangoutStatus.OPEN
    hangout.updated_at = utcnow()
    session.add(hangout)
    session.commit()
    session.refresh(hangout)
    logger.info(f"{caller.name} unassigned themselves from hangout {hangout.id}")

    pup = hangout.pup
    return HangoutOutcome(
        hangouts=[hangout],
        notifications=composer.hangout_unassigned(hangout, pup, pup.owner, caller),
    )


def add_note(session: Session, caller: User, hangout_id: UUID, note_text: str) -> HangoutNote:
    """Append a note to the hangout's thread (owner or assigned friend)."""
    hangout = get_hangout(session, hangout_id)
    if not (_is_pup_owner(caller, hangout.pup) or hangout.assigned_friend_user_id == caller.id):
        raise PermissionDeniedError("You do not have permission to add notes to this hangout")
    if not note_text.strip():
        raise ValidationError("Note cannot be empty")

    note = HangoutNote(hangout_id=hangout.id, author_user_id=caller.id, note_text=note_text.strip())
    session.add(note)
    session.commit()
    session.refresh(note)
    return note


def respond_to_hangout(
    session: Session, caller: User, hangout_id: UUID, response: ResponseStatus
) -> HangoutResponse:
    """Record a friend's YES/NO availability for an OPEN hangout."""
    hangout = get_hangout(session, hangout_id)
    if not caller.is_friend or not get_friendship(session, hangout.pup_id, caller.id):
        raise PermissionDeniedError("You do not have permission to care for this pup")
    if hangout.status != HangoutStatus.OPEN:
        raise ConflictError("Hangout is no longer open")

    statement = (
        select(HangoutResponse)
        .where(HangoutResponse.hangout_id == hangout.id)
        .where(HangoutResponse.responder_user_id == caller.id)
    )
    existing = session.exec(statement).first()
    if existing:
        existing.status = response
        existing.responded_at = utcnow()
    else:
        existing = HangoutResponse(
            hangout_id=hangout.id, responder_user_id=caller.id, status=response
        )
    session.add(existing)
    session.commit()
    session.refresh(existing)
    return existing


def get_hangout_for_viewer(session: Session, viewer: User, hangout_id: UUID) -> Hangout:
    """Fetch a hangout the viewer is allowed to see."""
    hangout = get_hangout(session, hangout_id)
    if _is_pup_owner(viewer, hangout.pup):
        return hangout
    if hangout.assigned_friend_user_id == viewer.id:
        return hangout
    if viewer.is_friend and get_friendship(session, hangout.pup_id, viewer.id):
        return hangout
    raise PermissionDeniedError("You do not have access to this hangout")


def _preset_window(time_range: str, now: datetime) -> tuple[datetime, datetime]:
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_range == "today":
        return start_of_today, start_of_today + timedelta(days=1)
    # Weeks start on Monday
    start_of_week = start_of_today - timedelta(days=start_of_today.weekday())
    if time_range == "nextweek":
        start_of_week += timedelta(weeks=1)
    return start_of_week, start_of_week + timedelta(weeks=1)


def list_hangouts(
    session: Session, viewer: User, query: HangoutQuery, now: datetime | None = None
) -> tuple[list[Hangout], int]:
    """
    List active hangouts visible to ``viewer``.

    Owners see their own pups' hangouts. Friends see OPEN hangouts of pups
    they are linked to plus hangouts assigned to them; ``context`` narrows
    that to one of the two. Without an explicit window or preset only
    upcoming hangouts are returned.

    Returns the requested page and the total number of matches.
    """
    now = now or utcnow()
    statement = select(Hangout)

    if query.start or query.end:
        if query.start:
            statement = statement.where(Hangout.end_at > normalize(query.start))
        if query.end:
            statement = statement.where(Hangout.start_at < normalize(query.end))
    elif query.time_range == "all":
        statement = statement.where(Hangout.start_at >= now)
    else:
        range_start, range_end = _preset_window(query.time_range, now)
        statement = (
            statement.where(Hangout.start_at >= range_start)
            .where(Hangout.start_at < range_end)
            .where(Hangout.end_at >= now)
        )

    if query.status == "open":
        statuses = [HangoutStatus.OPEN]
    elif query.status == "confirmed":
        statuses = [HangoutStatus.ASSIGNED]
    else:
        statuses = list(ACTIVE_STATUSES)
    statement = statement.where(col(Hangout.status).in_(statuses))

    pup_ids = linked_pup_ids(session, viewer)
    available = and_(
        Hangout.status == HangoutStatus.OPEN, col(Hangout.pup_id).in_(pup_ids)
    )
    assigned = Hangout.assigned_friend_user_id == viewer.id
    if viewer.is_owner:
        statement = statement.where(col(Hangout.pup_id).in_(pup_ids))
    elif query.context == "available":
        statement = statement.where(available)
    elif query.context == "assigned":
        statement = statement.where(assigned)
    else:
        statement = statement.where(or_(available, assigned))

    statement = statement.order_by(Hangout.start_at)

    if not query.hide_repeats:
        total = session.exec(select(func.count()).select_from(statement.subquery())).one()
        page = session.exec(statement.offset(query.offset).limit(query.limit)).all()
        return list(page), total

    # Keep only the first upcoming occurrence of each series
    seen_series: set[UUID] = set()
    hangouts = []
    for hangout in session.exec(statement).all():
        if hangout.series_id is not None:
            if hangout.series_id in seen_series:
                continue
            seen_series.add(hangout.series_id)
        hangouts.append(hangout)
    return hangouts[query.offset:query.offset + query.limit], len(hangouts)


def complete_past_hangouts(session: Session, now: datetime | None = None) -> int:
    """Move ASSIGNED hangouts that have ended to COMPLETED. Returns the count."""
    now = now or utcnow()
    statement = (
        select(Hangout)
        .where(Hangout.status == HangoutStatus.ASSIGNED)
        .where(Hangout.end_at <= now)
    )
    finished = session.exec(statement).all()
    for hangout in finished:
        hangout.status = HangoutStatus.COMPLETED
        hangout.updated_at = now
        session.add(hangout)
    session.commit()
    return len(finished)
