"""Shared route dependencies."""
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from dogcal.core.database import get_session
from dogcal.models import User
from dogcal.notifications.dispatcher import Transport
from dogcal.notifications.whatsapp import WhatsAppTransport


def get_acting_user(
    x_acting_user: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> User:
    """
    Resolve the acting user from the ``X-Acting-User`` header.

    Authentication happens upstream; this only maps the trusted id to a
    stored user.
    """
    if not x_acting_user:
        raise HTTPException(status_code=401, detail="No acting user set")
    try:
        user_id = UUID(x_acting_user)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid acting user") from None

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Acting user not found")
    return user


def get_transport() -> Transport:
    return WhatsAppTransport()
