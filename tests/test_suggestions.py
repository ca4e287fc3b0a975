"""Tests for the suggestion workflow."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from sqlmodel import Session, select

from dogcal.core.config import settings
from dogcal.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from dogcal.models import Hangout, HangoutStatus, HangoutSuggestion, SuggestionStatus
from dogcal.scheduling import suggestions as service
from dogcal.scheduling.hangouts import create_hangouts
from dogcal.schemas import (
    Decision,
    HangoutCreate,
    RecurrenceRequest,
    SuggestionCreate,
    SuggestionUpdate,
)

SATURDAY = datetime(2030, 6, 15)


def at(hour: int, day_offset: int = 0) -> datetime:
    return SATURDAY + timedelta(days=day_offset, hours=hour)


def propose(session, friend, pup, start=None, end=None, **extra):
    data = SuggestionCreate(
        pup_id=pup.id, start_at=start or at(10), end_at=end or at(12), **extra
    )
    return service.propose_suggestions(session, friend, data)


def all_hangouts(session):
    return session.exec(select(Hangout)).all()


@pytest.mark.usefixtures("friendships")
class TestProposeSuggestions:
    def test_propose_notifies_owner(self, session, owner, pup, friend):
        outcome = propose(session, friend, pup, friend_comment="I'm free all morning")

        suggestion = outcome.suggestion
        assert suggestion.status == SuggestionStatus.PENDING
        assert suggestion.suggested_by_friend_user_id == friend.id
        assert len(outcome.notifications) == 1
        intent = outcome.notifications[0]
        assert (intent.user_id, intent.kind) == (owner.id, "suggestion_created")
        assert "I'm free all morning" in intent.message

    def test_friend_without_friendship_rejected(self, session, pup, stranger):
        with pytest.raises(PermissionDeniedError):
            propose(session, stranger, pup)

    def test_owner_cannot_propose(self, session, owner, pup):
        with pytest.raises(PermissionDeniedError):
            propose(session, owner, pup)

    def test_invalid_window(self, session, pup, friend):
        with pytest.raises(ValidationError):
            propose(session, friend, pup, start=at(12), end=at(11))
        assert session.exec(select(HangoutSuggestion)).all() == []

    def test_suggestions_ignore_calendar_conflicts(self, session, owner, pup, friend):
        create_hangouts(
            session, owner, HangoutCreate(pup_id=pup.id, start_at=at(9), end_at=at(13))
        )
        outcome = propose(session, friend, pup)
        assert outcome.suggestion.status == SuggestionStatus.PENDING

    def test_recurring_suggestion(self, session, pup, friend):
        outcome = propose(
            session,
            friend,
            pup,
            recurrence=RecurrenceRequest(frequency="monthly", count=3),
        )
        assert [s.series_index for s in outcome.suggestions] == [0, 1, 2]
        assert len({s.series_id for s in outcome.suggestions}) == 1
        assert outcome.suggestions[2].start_at == datetime(2030, 8, 15, 10)
        assert len(outcome.notifications) == 1


@pytest.mark.usefixtures("friendships")
class TestDecideSuggestion:
    def test_approve_creates_assigned_hangout(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup, event_name="Beach walk").suggestion

        outcome = service.decide_suggestion(
            session, owner, suggestion.id, Decision.APPROVE, "Towel is in the car"
        )

        assert outcome.suggestion.status == SuggestionStatus.APPROVED
        assert outcome.suggestion.owner_decision_by_user_id == owner.id
        assert outcome.suggestion.owner_decision_at is not None
        hangout = outcome.hangout
        assert hangout.status == HangoutStatus.ASSIGNED
        assert hangout.assigned_friend_user_id == friend.id
        assert hangout.owner_notes == "Towel is in the car"
        assert hangout.event_name == "Beach walk"
        assert (hangout.start_at, hangout.end_at) == (at(10), at(12))
        assert [(i.user_id, i.kind) for i in outcome.notifications] == [
            (friend.id, "suggestion_approved")
        ]

    def test_reject(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion

        outcome = service.decide_suggestion(
            session, owner, suggestion.id, Decision.REJECT, "We're away that week"
        )

        assert outcome.suggestion.status == SuggestionStatus.REJECTED
        assert outcome.suggestion.owner_comment == "We're away that week"
        assert outcome.hangout is None
        assert all_hangouts(session) == []
        assert outcome.notifications[0].kind == "suggestion_rejected"

    def test_second_approve_conflicts_without_duplicate(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        service.decide_suggestion(session, owner, suggestion.id, Decision.APPROVE)

        with pytest.raises(ConflictError):
            service.decide_suggestion(session, owner, suggestion.id, Decision.APPROVE)
        assert len(all_hangouts(session)) == 1

    def test_approve_is_atomic(self, session, owner, pup, friend, monkeypatch):
        """A failure after the hangout insert leaves neither write behind."""
        suggestion = propose(session, friend, pup).suggestion

        def fail(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(service, "_record_decision", fail)

        with pytest.raises(RuntimeError):
            service.decide_suggestion(session, owner, suggestion.id, Decision.APPROVE)

        session.refresh(suggestion)
        assert suggestion.status == SuggestionStatus.PENDING
        assert suggestion.owner_decision_at is None
        assert all_hangouts(session) == []

    def test_approve_allows_overlap_by_default(self, session, owner, pup, friend):
        create_hangouts(
            session, owner, HangoutCreate(pup_id=pup.id, start_at=at(11), end_at=at(13))
        )
        suggestion = propose(session, friend, pup).suggestion

        outcome = service.decide_suggestion(session, owner, suggestion.id, Decision.APPROVE)
        assert outcome.hangout is not None

    def test_overlap_guard(self, session, owner, pup, friend, monkeypatch):
        monkeypatch.setattr(settings, "approval_overlap_guard", True)
        create_hangouts(
            session, owner, HangoutCreate(pup_id=pup.id, start_at=at(11), end_at=at(13))
        )
        suggestion = propose(session, friend, pup).suggestion

        with pytest.raises(ConflictError):
            service.decide_suggestion(session, owner, suggestion.id, Decision.APPROVE)

        session.refresh(suggestion)
        assert suggestion.status == SuggestionStatus.PENDING
        assert len(all_hangouts(session)) == 1

    def test_only_pup_owner_decides(self, session, owner, other_owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        with pytest.raises(PermissionDeniedError):
            service.decide_suggestion(session, other_owner, suggestion.id, Decision.APPROVE)
        with pytest.raises(PermissionDeniedError):
            service.decide_suggestion(session, friend, suggestion.id, Decision.APPROVE)

    def test_missing_suggestion(self, session, owner):
        with pytest.raises(NotFoundError):
            service.decide_suggestion(session, owner, uuid4(), Decision.REJECT)


@pytest.mark.usefixtures("friendships")
class TestEditSuggestion:
    def test_creator_edits_pending(self, session, pup, friend):
        suggestion = propose(session, friend, pup).suggestion

        outcome = service.edit_suggestion(
            session, friend, suggestion.id, SuggestionUpdate(end_at=at(14), event_name="Park")
        )
        assert outcome.suggestion.end_at == at(14)
        assert outcome.suggestion.event_name == "Park"

    def test_other_user_cannot_edit(self, session, owner, pup, friend, second_friend):
        suggestion = propose(session, friend, pup).suggestion
        for user in (owner, second_friend):
            with pytest.raises(PermissionDeniedError):
                service.edit_suggestion(
                    session, user, suggestion.id, SuggestionUpdate(event_name="Mine")
                )

    def test_decided_suggestion_cannot_be_edited(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        service.decide_suggestion(session, owner, suggestion.id, Decision.REJECT)
        with pytest.raises(ConflictError):
            service.edit_suggestion(
                session, friend, suggestion.id, SuggestionUpdate(start_at=at(9))
            )

    def test_window_revalidated(self, session, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        with pytest.raises(ValidationError):
            service.edit_suggestion(
                session, friend, suggestion.id, SuggestionUpdate(start_at=at(13))
            )

    def test_explicit_null_time_rejected(self, session, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        with pytest.raises(ValidationError, match="end_at cannot be null"):
            service.edit_suggestion(
                session, friend, suggestion.id, SuggestionUpdate(end_at=None)
            )
        session.refresh(suggestion)
        assert suggestion.end_at == at(12)

    def test_edit_rechecks_status_after_stale_read(self, engine, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        with Session(engine) as other:
            # Loaded while still pending, then decided elsewhere
            assert other.get(HangoutSuggestion, suggestion.id).status == SuggestionStatus.PENDING
            service.decide_suggestion(session, owner, suggestion.id, Decision.REJECT)

            with pytest.raises(ConflictError):
                service.edit_suggestion(
                    other, friend, suggestion.id, SuggestionUpdate(event_name="Late")
                )

        session.refresh(suggestion)
        assert suggestion.event_name is None


@pytest.mark.usefixtures("friendships")
class TestWithdrawSuggestion:
    def test_creator_withdrawal_notifies_owner(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion

        outcome = service.withdraw_suggestion(session, friend, suggestion.id)

        assert [(i.user_id, i.kind) for i in outcome.notifications] == [
            (owner.id, "suggestion_deleted")
        ]
        assert session.exec(select(HangoutSuggestion)).all() == []

    def test_owner_withdrawal_notifies_nobody(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion

        outcome = service.withdraw_suggestion(session, owner, suggestion.id)

        assert outcome.notifications == []
        assert session.exec(select(HangoutSuggestion)).all() == []

    def test_rejected_suggestion_cannot_be_withdrawn(self, session, owner, pup, friend):
        suggestion = propose(session, friend, pup).suggestion
        service.decide_suggestion(session, owner, suggestion.id, Decision.REJECT)

        with pytest.raises(ConflictError):
            service.withdraw_suggestion(session, friend, suggestion.id)

    def test_withdraw_rechecks_status_after_stale_read(
        self, engine, session, owner, pup, friend
    ):
        suggestion = propose(session, friend, pup).suggestion
        with Session(engine) as other:
            assert other.get(HangoutSuggestion, suggestion.id).status == SuggestionStatus.PENDING
            service.decide_suggestion(session, owner, suggestion.id, Decision.APPROVE)

            with pytest.raises(ConflictError, match="already approved"):
                service.withdraw_suggestion(other, friend, suggestion.id)

        session.refresh(suggestion)
        assert suggestion.status == SuggestionStatus.APPROVED
        assert len(all_hangouts(session)) == 1

    def test_unrelated_user_cannot_withdraw(self, session, other_owner, pup, friend, second_friend):
        suggestion = propose(session, friend, pup).suggestion
        for user in (other_owner, second_friend):
            with pytest.raises(PermissionDeniedError):
                service.withdraw_suggestion(session, user, suggestion.id)


@pytest.mark.usefixtures("friendships")
class TestListSuggestions:
    def test_visibility(self, session, owner, other_owner, pup, friend, second_friend):
        propose(session, friend, pup)
        propose(session, second_friend, pup, start=at(14), end=at(15))

        assert len(service.list_suggestions(session, owner)) == 2
        assert service.list_suggestions(session, other_owner) == []
        mine = service.list_suggestions(session, friend)
        assert [s.suggested_by_friend_user_id for s in mine] == [friend.id]

    def test_status_filter(self, session, owner, pup, friend):
        first = propose(session, friend, pup).suggestion
        propose(session, friend, pup, start=at(14), end=at(15))
        service.decide_suggestion(session, owner, first.id, Decision.REJECT)

        pending = service.list_suggestions(session, owner, SuggestionStatus.PENDING)
        assert [s.start_at for s in pending] == [at(14)]

    def test_time_range_filter(self, session, owner, pup, friend):
        propose(session, friend, pup, start=datetime(2030, 1, 5, 10), end=datetime(2030, 1, 5, 12))
        propose(session, friend, pup, start=datetime(2031, 1, 5, 10), end=datetime(2031, 1, 5, 12))

        between = service.list_suggestions(
            session, owner, start=datetime(2030, 6, 1), end=datetime(2030, 12, 31)
        )
        assert between == []

        from_june = service.list_suggestions(
            session, owner, start=datetime(2030, 6, 1, tzinfo=UTC)
        )
        assert [s.start_at for s in from_june] == [datetime(2031, 1, 5, 10)]

        # A window straddling the range boundary still matches
        straddling = service.list_suggestions(
            session, friend, start=datetime(2030, 1, 5, 11), end=datetime(2030, 1, 5, 11, 30)
        )
        assert [s.start_at for s in straddling] == [datetime(2030, 1, 5, 10)]

    def test_get_for_viewer(self, session, owner, pup, friend, second_friend):
        suggestion = propose(session, friend, pup).suggestion
        assert service.get_suggestion_for_viewer(session, owner, suggestion.id).id == suggestion.id
        with pytest.raises(PermissionDeniedError):
            service.get_suggestion_for_viewer(session, second_friend, suggestion.id)
