"""Suggestion routes: friends propose times, owners approve or reject."""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session

from dogcal.core.database import get_session
from dogcal.models import SuggestionStatus, User
from dogcal.notifications.dispatcher import Transport, dispatch
from dogcal.routes.deps import get_acting_user, get_transport
from dogcal.scheduling import suggestions as service
from dogcal.schemas import (
    HangoutRead,
    SuggestionChanged,
    SuggestionCreate,
    SuggestionDecision,
    SuggestionRead,
    SuggestionsCreated,
    SuggestionUpdate,
    SuggestionWithdrawn,
)

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.post("", status_code=201, response_model=SuggestionsCreated)
async def propose(
    data: SuggestionCreate,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    """Suggest one hangout time, or a recurring series, for a befriended pup."""
    outcome = service.propose_suggestions(session, user, data)
    results = await dispatch(outcome.notifications, transport)
    return SuggestionsCreated(
        suggestions=[SuggestionRead.model_validate(s) for s in outcome.suggestions],
        notifications=results,
    )


@router.get("", response_model=list[SuggestionRead])
async def list_suggestions(
    status: SuggestionStatus | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    """List suggestions visible to the acting user, optionally within ``start``/``end``."""
    suggestions = service.list_suggestions(session, user, status, start, end)
    return [SuggestionRead.model_validate(s) for s in suggestions]


@router.get("/{suggestion_id}", response_model=SuggestionRead)
async def get_suggestion(
    suggestion_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    suggestion = service.get_suggestion_for_viewer(session, user, suggestion_id)
    return SuggestionRead.model_validate(suggestion)


@router.patch("/{suggestion_id}", response_model=SuggestionChanged)
async def edit(
    suggestion_id: UUID,
    patch: SuggestionUpdate,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
):
    """Change a pending suggestion. Only the friend who made it may edit."""
    outcome = service.edit_suggestion(session, user, suggestion_id, patch)
    return SuggestionChanged(
        suggestion=SuggestionRead.model_validate(outcome.suggestion), notifications=[]
    )


@router.delete("/{suggestion_id}", response_model=SuggestionWithdrawn)
async def withdraw(
    suggestion_id: UUID,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    outcome = service.withdraw_suggestion(session, user, suggestion_id)
    results = await dispatch(outcome.notifications, transport)
    return SuggestionWithdrawn(suggestion_id=suggestion_id, notifications=results)


@router.post("/{suggestion_id}/decision", response_model=SuggestionChanged)
async def decide(
    suggestion_id: UUID,
    data: SuggestionDecision,
    user: User = Depends(get_acting_user),
    session: Session = Depends(get_session),
    transport: Transport = Depends(get_transport),
):
    """
    Approve or reject a pending suggestion.

    Approving creates a hangout assigned to the suggesting friend; it is
    returned alongside the updated suggestion.
    """
    outcome = service.decide_suggestion(
        session, user, suggestion_id, data.decision, data.owner_comment
    )
    results = await dispatch(outcome.notifications, transport)
    return SuggestionChanged(
        suggestion=SuggestionRead.model_validate(outcome.suggestion),
        hangout=HangoutRead.model_validate(outcome.hangout) if outcome.hangout else None,
        notifications=results,
    )
