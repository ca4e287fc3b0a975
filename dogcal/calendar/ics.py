"""Export a confirmed hangout as an iCalendar (.ics) file."""
import re
from datetime import datetime
from uuid import UUID

from sqlmodel import Session

from dogcal.core.errors import PermissionDeniedError, ValidationError
from dogcal.models import Hangout, HangoutStatus, User
from dogcal.scheduling.hangouts import get_hangout
from dogcal.scheduling.relationships import get_user
from dogcal.scheduling.timewindow import utcnow

PRODID = "-//Dogcal//Hangout Calendar//EN"


def format_ics_datetime(dt: datetime) -> str:
    """Naive UTC datetime as an iCalendar UTC timestamp, e.g. 20240115T140000Z."""
    return dt.strftime("%Y%m%dT%H%M%SZ")


def escape_ics_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def build_ics(hangout: Hangout, owner: User, helper: User | None, now: datetime | None = None) -> str:
    pup = hangout.pup
    summary = hangout.event_name or f"{pup.name} hangout"

    description_parts = [f"Dogcal hangout for {pup.name}.", f"Owner: {owner.name}."]
    if helper:
        description_parts.append(f"Helper: {helper.name}.")
    if hangout.owner_notes:
        description_parts.append(f"Notes: {hangout.owner_notes}")

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "BEGIN:VEVENT",
        f"UID:dogcal-{hangout.id}@dogcal",
        f"DTSTAMP:{format_ics_datetime(now or utcnow())}",
        f"DTSTART:{format_ics_datetime(hangout.start_at)}",
        f"DTEND:{format_ics_datetime(hangout.end_at)}",
        f"SUMMARY:{escape_ics_text(summary)}",
        f"DESCRIPTION:{escape_ics_text(' '.join(description_parts))}",
        "STATUS:CONFIRMED",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines)


def ics_filename(hangout: Hangout) -> str:
    slug = re.sub(r"\s+", "-", hangout.pup.name.lower())
    return f"dogcal-hangout-{slug}.ics"


def export_hangout(session: Session, viewer: User, hangout_id: UUID) -> tuple[str, str]:
    """
    Render a confirmed hangout for the owner or the assigned friend.

    Returns ``(filename, ics_text)``.
    """
    hangout = get_hangout(session, hangout_id)
    owner = hangout.pup.owner
    if viewer.id not in (owner.id, hangout.assigned_friend_user_id):
        raise PermissionDeniedError("Not authorized to export this hangout")
    if hangout.status != HangoutStatus.ASSIGNED:
        raise ValidationError("Only confirmed hangouts can be exported")

    helper = get_user(session, hangout.assigned_friend_user_id)
    return ics_filename(hangout), build_ics(hangout, owner, helper)
