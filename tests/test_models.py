"""Tests for database models."""

from datetime import datetime

import pytest
from sqlalchemy import DateTime
from sqlmodel import Session, select

from dogcal.models import (
    Friendship,
    Hangout,
    HangoutNote,
    HangoutResponse,
    HangoutStatus,
    HangoutSuggestion,
    ResponseStatus,
    SuggestionStatus,
    User,
    UserRole,
)


class TestUserModel:
    def test_roles(self, owner: User, friend: User):
        assert owner.is_owner and not owner.is_friend
        assert friend.is_friend and not friend.is_owner

    def test_phone_optional(self, session: Session):
        user = User(name="NoPhone", role=UserRole.FRIEND)
        session.add(user)
        session.commit()
        assert session.get(User, user.id).phone_number is None


class TestFriendshipModel:
    def test_unique_per_pup_and_friend(self, session: Session, pup, friend, friendships):
        session.add(Friendship(pup_id=pup.id, friend_user_id=friend.id))
        with pytest.raises(Exception):  # IntegrityError
            session.commit()

    def test_pup_friendships_relationship(self, session: Session, pup, friendships):
        session.refresh(pup)
        assert len(pup.friendships) == 2
        assert {f.friend.name for f in pup.friendships} == {"Frankie", "Gus"}


class TestHangoutModel:
    def _hangout(self, session, pup, owner, **extra) -> Hangout:
        hangout = Hangout(
            pup_id=pup.id,
            start_at=datetime(2030, 1, 1, 10),
            end_at=datetime(2030, 1, 1, 12),
            created_by_owner_user_id=owner.id,
            **extra,
        )
        session.add(hangout)
        session.commit()
        session.refresh(hangout)
        return hangout

    def test_defaults(self, session: Session, pup, owner):
        hangout = self._hangout(session, pup, owner)
        assert hangout.status == HangoutStatus.OPEN
        assert hangout.is_active
        assert hangout.pup.name == "Biscuit"
        assert hangout.created_at is not None

    def test_naive_utc_round_trip(self, session: Session, pup, owner):
        hangout = self._hangout(session, pup, owner)
        session.expire_all()

        stored = session.get(Hangout, hangout.id)
        assert stored.start_at == datetime(2030, 1, 1, 10)
        assert stored.start_at.tzinfo is None
        assert stored.created_at.tzinfo is None

    @pytest.mark.parametrize(
        "column",
        [
            Hangout.__table__.c.start_at,
            Hangout.__table__.c.end_at,
            Hangout.__table__.c.updated_at,
            HangoutNote.__table__.c.created_at,
            HangoutResponse.__table__.c.responded_at,
            HangoutSuggestion.__table__.c.start_at,
            HangoutSuggestion.__table__.c.owner_decision_at,
        ],
    )
    def test_datetime_columns_are_timezone_naive(self, column):
        assert type(column.type) is DateTime
        assert column.type.timezone is False

    def test_terminal_statuses_inactive(self, session: Session, pup, owner):
        for status in (HangoutStatus.COMPLETED, HangoutStatus.CANCELLED):
            assert not self._hangout(session, pup, owner, status=status).is_active

    def test_notes_and_responses_deleted_with_hangout(self, session: Session, pup, owner, friend):
        hangout = self._hangout(session, pup, owner)
        hangout.notes.append(HangoutNote(author_user_id=owner.id, note_text="Hi"))
        hangout.responses.append(
            HangoutResponse(responder_user_id=friend.id, status=ResponseStatus.YES)
        )
        session.commit()

        session.delete(hangout)
        session.commit()

        assert session.exec(select(HangoutNote)).all() == []
        assert session.exec(select(HangoutResponse)).all() == []

    def test_one_response_per_friend(self, session: Session, pup, owner, friend):
        hangout = self._hangout(session, pup, owner)
        session.add(
            HangoutResponse(
                hangout_id=hangout.id, responder_user_id=friend.id, status=ResponseStatus.YES
            )
        )
        session.commit()
        session.add(
            HangoutResponse(
                hangout_id=hangout.id, responder_user_id=friend.id, status=ResponseStatus.NO
            )
        )
        with pytest.raises(Exception):  # IntegrityError
            session.commit()


class TestSuggestionModel:
    def test_defaults(self, session: Session, pup, friend):
        suggestion = HangoutSuggestion(
            pup_id=pup.id,
            start_at=datetime(2030, 1, 1, 10),
            end_at=datetime(2030, 1, 1, 12),
            suggested_by_friend_user_id=friend.id,
        )
        session.add(suggestion)
        session.commit()
        session.refresh(suggestion)
        assert suggestion.status == SuggestionStatus.PENDING
        assert suggestion.owner_decision_at is None
        assert suggestion.pup.owner.name == "Olivia"

    def test_decision_time_stored_naive(self, session: Session, pup, friend):
        suggestion = HangoutSuggestion(
            pup_id=pup.id,
            start_at=datetime(2030, 1, 1, 10),
            end_at=datetime(2030, 1, 1, 12),
            suggested_by_friend_user_id=friend.id,
            owner_decision_at=datetime(2029, 12, 31, 18, 30),
        )
        session.add(suggestion)
        session.commit()
        session.expire_all()

        stored = session.get(HangoutSuggestion, suggestion.id)
        assert stored.owner_decision_at == datetime(2029, 12, 31, 18, 30)
