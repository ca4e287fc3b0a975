"""Hangout routes: create, browse, reschedule, claim and cancel slots."""
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from dogcal.calendar.ics import export_hangout
from dogcal.core.database import get_session
from dogcal.models import User
from dogcal.notifications.dispatcher import Transport, dispatch
from dogcal.routes.deps import get_acting_user, get_transport
from dogcal.scheduling import hangouts as service
from dogcal.schemas import (
    HangoutChanged,
    HangoutCreate,
    HangoutDeleted,
    HangoutDetail,
    HangoutPage,
    HangoutQuery,
    HangoutRead,
    HangoutsCreated,
    HangoutUpdate,
    NoteCreate,
    NoteRead,
    ResponseCreate,
    ResponseRead,
    Window,
)

router = APIRouter(prefix="/hangouts", tags=["hangouts"])


async def _changed(outcome: service.HangoutOutcome, transport: Transport) -> HangoutChanged:
    results = await dispatch(outcome.notifications, transport, throttle=outcome.throttle)
    return HangoutChanged(
        hangout=HangoutRead.model_validate(outcome.hangout), notifications=results
    )


@router.post("", status_code=201, response_model=HangoutsCreated)
async def create_hangouts(
    data: HangoutCreate,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    """
    Create a hangout, or a recurring series when ``recurrence`` is given.

    Occurrences that overlap an existing hangout are listed in
    ``skipped_occurrences`` instead of being created (unless the server runs
    with SERIES_ALL_OR_NOTHING=true, in which case the whole request fails).
    """
    outcome = service.create_hangouts(session, user, data)
    results = await dispatch(outcome.notifications, transport, throttle=outcome.throttle)
    return HangoutsCreated(
        hangouts=[HangoutRead.model_validate(h) for h in outcome.hangouts],
        skipped_occurrences=[Window(start_at=s, end_at=e) for s, e in outcome.skipped_occurrences],
        notifications=results,
    )


@router.get("", response_model=HangoutPage)
async def list_hangouts(
    query: Annotated[HangoutQuery, Query()],
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    """List upcoming hangouts visible to the acting user."""
    hangouts, total = service.list_hangouts(session, user, query)
    return HangoutPage(
        hangouts=[HangoutRead.model_validate(h) for h in hangouts],
        total=total,
        has_more=query.offset + len(hangouts) < total,
    )


@router.get("/{hangout_id}", response_model=HangoutDetail)
async def get_hangout(
    hangout_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    hangout = service.get_hangout_for_viewer(session, user, hangout_id)
    return HangoutDetail.model_validate(hangout)


@router.patch("/{hangout_id}", response_model=HangoutChanged)
async def update_hangout(
    hangout_id: UUID,
    patch: HangoutUpdate,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    """
    Partially update a hangout.

    Owners may change every field. The assigned friend may only move the
    time window.
    """
    outcome = service.update_hangout(session, user, hangout_id, patch)
    return await _changed(outcome, transport)


@router.delete("/{hangout_id}", response_model=HangoutDeleted)
async def delete_hangout(
    hangout_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    outcome = service.delete_hangout(session, user, hangout_id)
    results = await dispatch(outcome.notifications, transport, throttle=outcome.throttle)
    return HangoutDeleted(hangout_id=hangout_id, notifications=results)


@router.post("/{hangout_id}/claim", response_model=HangoutChanged)
async def claim_hangout(
    hangout_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    """Assign the acting friend to an open hangout."""
    outcome = service.claim_hangout(session, user, hangout_id)
    return await _changed(outcome, transport)


@router.post("/{hangout_id}/unassign", response_model=HangoutChanged)
async def unassign_hangout(
    hangout_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    outcome = service.unassign_hangout(session, user, hangout_id)
    return await _changed(outcome, transport)


@router.post("/{hangout_id}/notes", status_code=201, response_model=NoteRead)
async def add_note(
    hangout_id: UUID,
    data: NoteCreate,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    note = service.add_note(session, user, hangout_id, data.note_text)
    return NoteRead.model_validate(note)


@router.post("/{hangout_id}/responses", response_model=ResponseRead)
async def respond(
    hangout_id: UUID,
    data: ResponseCreate,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    """Record the acting friend's YES/NO availability for an open hangout."""
    response = service.respond_to_hangout(session, user, hangout_id, data.response)
    return ResponseRead.model_validate(response)


@router.get("/{hangout_id}/calendar")
async def export_calendar(
    hangout_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    """Download a confirmed hangout as an .ics file."""
    filename, content = export_hangout(session, user, hangout_id)
    return Response(
        content,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "private, max-age=0, must-revalidate",
        },
    )
